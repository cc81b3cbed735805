from typing import Any

import dns.exception
import dns.resolver

from osint_desk.services.providers.base import SearchProvider

RECORD_TYPES = ("A", "AAAA", "CNAME", "MX", "NS", "TXT")


class DnsProvider(SearchProvider):
    """Live DNS records for a domain; needs no API key."""

    name = "dns"

    def __init__(self, config, lifetime: float = 3.0):
        super().__init__(config)
        self.lifetime = lifetime

    def _resolver(self) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver()
        resolver.lifetime = self.lifetime
        return resolver

    def search(self, search_type: str, query: str) -> list[dict[str, Any]]:
        domain = query.strip().lower().rstrip(".")
        resolver = self._resolver()
        out = []
        failures = []
        for rt in RECORD_TYPES:
            try:
                ans = resolver.resolve(domain, rt)
            except dns.resolver.NXDOMAIN:
                return []
            except dns.resolver.NoAnswer:
                continue
            except dns.exception.DNSException as e:
                failures.append(f"{rt}: {e.__class__.__name__}")
                continue
            records = [str(r).strip() for r in ans]
            out.append(
                self.result(
                    search_type,
                    title=f"{rt} records for {domain}",
                    data={"domain": domain, "record_type": rt, "records": records, "count": len(records)},
                    confidence=90,
                )
            )
        if not out and len(failures) == len(RECORD_TYPES):
            raise self.fail("; ".join(failures))
        return out

    def check(self) -> str:
        try:
            self._resolver().resolve("example.com", "A")
        except dns.exception.DNSException as e:
            raise self.fail(f"resolver unavailable: {e.__class__.__name__}") from None
        return "resolver reachable"
