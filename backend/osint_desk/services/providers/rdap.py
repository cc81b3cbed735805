from datetime import datetime, timezone
from typing import Any, Optional

from osint_desk.core.clock import utcnow
from osint_desk.services.providers.base import SearchProvider


def _parse_rdap_date(s: str) -> Optional[datetime]:
    # RDAP often returns ISO-8601 like "2024-01-02T03:04:05Z"
    try:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class RdapProvider(SearchProvider):
    """Registration data (RDAP) for domains and IP addresses."""

    name = "rdap"

    def __init__(self, config, default_base_url: str = "https://rdap.org"):
        super().__init__(config)
        self.base_url = (config.base_url or default_base_url).rstrip("/")

    def search(self, search_type: str, query: str) -> list[dict[str, Any]]:
        kind = "ip" if search_type == "ip" else "domain"
        target = query.strip().lower()
        r = self.request(
            "GET",
            f"{self.base_url}/{kind}/{target}",
            headers={"Accept": "application/rdap+json"},
        )
        if r.status_code == 404:
            return []
        if r.status_code >= 400:
            raise self.fail(f"HTTP {r.status_code}")
        data = self.json_body(r)
        if not isinstance(data, dict):
            raise self.fail("malformed response (expected object)")

        events = self._events(data)
        reg_dt = None
        for ev in events:
            if ev.get("eventAction") in ("registration", "registered"):
                reg_dt = _parse_rdap_date(ev.get("eventDate") or "")
                break

        age_days = None
        if reg_dt:
            age_days = int((utcnow() - reg_dt).total_seconds() // 86400)

        return [
            self.result(
                search_type,
                title=str(data.get("ldhName") or data.get("name") or target),
                data={
                    "handle": data.get("handle"),
                    "status": data.get("status"),
                    "registration_date": reg_dt.isoformat() if reg_dt else None,
                    "domain_age_days": age_days,
                    "start_address": data.get("startAddress"),
                    "end_address": data.get("endAddress"),
                    "country": data.get("country"),
                    "events": [
                        {"action": ev.get("eventAction"), "date": ev.get("eventDate")}
                        for ev in events[:10]
                    ],
                },
                confidence=85,
                result_id=str(data["handle"]) if data.get("handle") is not None else None,
            )
        ]

    def _events(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        events = data.get("events") or []
        if not isinstance(events, list):
            raise self.fail("malformed response (events is not a list)")
        for ev in events:
            if not isinstance(ev, dict):
                raise self.fail("malformed response (event is not an object)")
            date = ev.get("eventDate")
            if date is not None and not isinstance(date, str):
                raise self.fail("malformed response (eventDate is not a string)")
        return events

    def check(self) -> str:
        r = self.request("GET", f"{self.base_url}/help", headers={"Accept": "application/rdap+json"})
        if r.status_code >= 400:
            raise self.fail(f"HTTP {r.status_code}")
        return f"HTTP {r.status_code}"
