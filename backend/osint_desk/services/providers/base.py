"""Search provider interface and the shared outbound HTTP call."""

import logging
import math
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from osint_desk.core.clock import isoformat_z, utcnow
from osint_desk.core.errors import ExternalProviderError
from osint_desk.metrics.prometheus import provider_latency_seconds, provider_requests_total

logger = logging.getLogger(__name__)


@dataclass
class ProviderConfig:
    name: str
    api_key: str = ""
    base_url: Optional[str] = None
    timeout: float = 10.0
    max_retries: int = 1


def scrub(text: str, secret: Optional[str]) -> str:
    if secret and len(secret) >= 4:
        return text.replace(secret, "***")
    return text


class SearchProvider(ABC):
    """One third-party lookup source, configured from an ApiConfig row."""

    name: str = "base"

    def __init__(self, config: ProviderConfig):
        self.config = config
        # outbound calls made through this instance, retries included
        self.calls = 0

    @abstractmethod
    def search(self, search_type: str, query: str) -> list[dict[str, Any]]:
        """Return normalised results; raise ExternalProviderError on failure."""
        ...

    @abstractmethod
    def check(self) -> str:
        """Cheap call proving the provider is reachable with these credentials."""
        ...

    def fail(self, message: str) -> ExternalProviderError:
        return ExternalProviderError(self.config.name, scrub(message, self.config.api_key))

    def result(
        self,
        search_type: str,
        title: str,
        data: dict[str, Any],
        confidence: float = 50,
        result_id: Optional[str] = None,
    ) -> dict[str, Any]:
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
            raise self.fail(f"malformed response (confidence {confidence!r})")
        return {
            "id": result_id or str(uuid.uuid4()),
            "type": search_type,
            "title": title,
            "data": data,
            "source": self.config.name,
            "confidence": max(0, min(100, int(confidence))),
            "timestamp": isoformat_z(utcnow()),
        }

    def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request, retrying once on transport errors and 5xx.

        4xx responses are handed back to the caller to interpret.
        """
        attempts = 1 + max(0, min(self.config.max_retries, 1))
        last_error = "no attempt made"
        start = time.perf_counter()
        try:
            with httpx.Client(timeout=self.config.timeout, follow_redirects=True) as client:
                for attempt in range(1, attempts + 1):
                    self.calls += 1
                    try:
                        r = client.request(method, url, **kwargs)
                    except httpx.TransportError as e:
                        last_error = f"{e.__class__.__name__}: {e}"
                    else:
                        if r.status_code < 500:
                            provider_requests_total.labels(provider=self.name, outcome="ok").inc()
                            return r
                        last_error = f"HTTP {r.status_code}"
                    logger.debug("%s attempt %d failed: %s", self.config.name, attempt, scrub(last_error, self.config.api_key))
        finally:
            provider_latency_seconds.labels(provider=self.name).observe(time.perf_counter() - start)

        provider_requests_total.labels(provider=self.name, outcome="error").inc()
        raise self.fail(last_error)

    def json_body(self, r: httpx.Response) -> Any:
        try:
            return r.json()
        except ValueError:
            raise self.fail("malformed response (not JSON)") from None
