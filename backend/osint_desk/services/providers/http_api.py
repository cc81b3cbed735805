from typing import Any

from osint_desk.services.providers.base import SearchProvider


class HttpApiProvider(SearchProvider):
    """Generic JSON lookup API reached at the config's base URL.

    Expects ``GET {base_url}/search?type=..&query=..`` to answer with either a
    list of result objects or ``{"results": [...]}``. Each object may carry
    ``id``, ``title`` (or ``name``), ``confidence`` and ``data``; any other keys
    are folded into ``data``.
    """

    name = "http"

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.config.api_key}"}

    def _base(self) -> str:
        if not self.config.base_url:
            raise self.fail("no base URL configured")
        return self.config.base_url.rstrip("/")

    def search(self, search_type: str, query: str) -> list[dict[str, Any]]:
        r = self.request(
            "GET",
            f"{self._base()}/search",
            params={"type": search_type, "query": query},
            headers=self._headers(),
        )
        if r.status_code == 404:
            return []
        if r.status_code >= 400:
            raise self.fail(f"HTTP {r.status_code}")

        body = self.json_body(r)
        items = body.get("results") if isinstance(body, dict) else body
        if not isinstance(items, list):
            raise self.fail("malformed response (no results list)")

        out = []
        for item in items:
            if not isinstance(item, dict):
                continue
            data = item.get("data")
            if not isinstance(data, dict):
                data = {k: v for k, v in item.items() if k not in ("id", "title", "name", "confidence")}
            confidence = item.get("confidence", 50)
            if not isinstance(confidence, (int, float)):
                confidence = 50
            out.append(
                self.result(
                    search_type,
                    title=str(item.get("title") or item.get("name") or query),
                    data=data,
                    confidence=confidence,
                    result_id=str(item["id"]) if item.get("id") is not None else None,
                )
            )
        return out

    def check(self) -> str:
        r = self.request("GET", self._base(), headers=self._headers())
        if r.status_code >= 400:
            raise self.fail(f"HTTP {r.status_code}")
        return f"HTTP {r.status_code}"
