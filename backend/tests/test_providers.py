import dns.exception
import dns.resolver
import httpx
import pytest

from osint_desk.core.errors import ExternalProviderError
from osint_desk.models.api_config import ApiConfig
from osint_desk.services.providers import build_provider
from osint_desk.services.providers.base import ProviderConfig, scrub
from osint_desk.services.providers.dns_lookup import DnsProvider
from osint_desk.services.providers.http_api import HttpApiProvider
from osint_desk.services.providers.rdap import RdapProvider


def _http(**kw):
    return HttpApiProvider(ProviderConfig(name="breachdb", api_key="secret-key-1234", base_url="https://api.test", **kw))


def test_build_provider_by_name():
    assert isinstance(build_provider(ApiConfig(category="domain", provider_name="DNS", api_key="-")), DnsProvider)
    assert isinstance(build_provider(ApiConfig(category="domain", provider_name="rdap", api_key="-")), RdapProvider)
    assert isinstance(build_provider(ApiConfig(category="email", provider_name="hibp", api_key="-")), HttpApiProvider)


def test_scrub():
    assert scrub("bad key abcd1234", "abcd1234") == "bad key ***"
    assert scrub("nothing", None) == "nothing"


def test_http_provider_normalises_results(mock_http):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={"results": [{"id": 7, "name": "Alice", "confidence": 140, "breach": "x"}, "junk"]},
        )

    mock_http(handler)
    results = _http().search("email", "alice@example.com")

    assert seen["auth"] == "Bearer secret-key-1234"
    assert seen["params"] == {"type": "email", "query": "alice@example.com"}
    assert len(results) == 1
    r = results[0]
    assert r["id"] == "7"
    assert r["title"] == "Alice"
    assert r["confidence"] == 100
    assert r["source"] == "breachdb"
    assert r["data"] == {"breach": "x"}


def test_http_provider_404_is_empty(mock_http):
    mock_http(lambda request: httpx.Response(404))
    assert _http().search("email", "nobody@example.com") == []


def test_http_provider_retries_once_on_5xx(mock_http):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    mock_http(handler)
    with pytest.raises(ExternalProviderError) as exc:
        _http().search("email", "a@x.io")
    assert len(calls) == 2
    assert "HTTP 503" in exc.value.message


def test_http_provider_recovers_on_retry(mock_http):
    responses = iter([httpx.Response(502), httpx.Response(200, json=[{"title": "ok"}])])
    mock_http(lambda request: next(responses))
    assert [r["title"] for r in _http().search("email", "a@x.io")] == ["ok"]


def test_http_provider_error_hides_key(mock_http):
    def handler(request):
        raise httpx.ConnectError("refused for secret-key-1234", request=request)

    mock_http(handler)
    with pytest.raises(ExternalProviderError) as exc:
        _http(max_retries=0).search("email", "a@x.io")
    assert "secret-key-1234" not in exc.value.message


def test_http_provider_malformed_body(mock_http):
    mock_http(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(ExternalProviderError):
        _http().search("email", "a@x.io")


def test_http_provider_without_base_url():
    provider = HttpApiProvider(ProviderConfig(name="p", api_key="k"))
    with pytest.raises(ExternalProviderError):
        provider.check()


def test_rdap_domain(mock_http):
    def handler(request):
        assert request.url.path == "/domain/example.com"
        return httpx.Response(
            200,
            json={
                "handle": "EX-1",
                "ldhName": "EXAMPLE.COM",
                "status": ["active"],
                "events": [{"eventAction": "registration", "eventDate": "1995-08-14T04:00:00Z"}],
            },
        )

    mock_http(handler)
    provider = RdapProvider(ProviderConfig(name="rdap"), default_base_url="https://rdap.test")
    [r] = provider.search("domain", "Example.com")
    assert r["title"] == "EXAMPLE.COM"
    assert r["data"]["registration_date"].startswith("1995-08-14")
    assert r["data"]["domain_age_days"] > 10000


def test_rdap_unknown_ip_is_empty(mock_http):
    mock_http(lambda request: httpx.Response(404))
    provider = RdapProvider(ProviderConfig(name="rdap"), default_base_url="https://rdap.test")
    assert provider.search("ip", "203.0.113.9") == []


def test_http_provider_non_finite_confidence_is_a_provider_error(mock_http):
    body = b'[{"title": "t", "confidence": NaN}]'
    mock_http(lambda request: httpx.Response(200, content=body, headers={"Content-Type": "application/json"}))
    with pytest.raises(ExternalProviderError) as exc:
        _http().search("email", "a@x.io")
    assert "confidence" in exc.value.message


@pytest.mark.parametrize(
    "body",
    [
        {"events": ["registration"]},
        {"events": "registration"},
        {"events": [{"eventAction": "registration", "eventDate": 19950814}]},
    ],
)
def test_rdap_unexpected_event_shape_is_a_provider_error(mock_http, body):
    mock_http(lambda request: httpx.Response(200, json=body))
    provider = RdapProvider(ProviderConfig(name="rdap"), default_base_url="https://rdap.test")
    with pytest.raises(ExternalProviderError):
        provider.search("domain", "example.com")


def test_provider_counts_retried_calls(mock_http):
    mock_http(lambda request: httpx.Response(503))
    provider = _http()
    with pytest.raises(ExternalProviderError):
        provider.search("email", "a@x.io")
    assert provider.calls == 2


class _FakeResolver:
    def __init__(self, answers=None, error=None):
        self.answers = answers or {}
        self.error = error

    def resolve(self, name, rdtype):
        if self.error is not None:
            raise self.error
        if rdtype in self.answers:
            return self.answers[rdtype]
        raise dns.resolver.NoAnswer()


def _dns(monkeypatch, resolver):
    monkeypatch.setattr(DnsProvider, "_resolver", lambda self: resolver)
    return DnsProvider(ProviderConfig(name="dns"))


def test_dns_collects_records(monkeypatch):
    provider = _dns(monkeypatch, _FakeResolver(answers={"A": ["93.184.216.34"]}))
    [r] = provider.search("domain", "Example.com.")
    assert r["data"] == {"domain": "example.com", "record_type": "A", "records": ["93.184.216.34"], "count": 1}


def test_dns_nxdomain_is_empty(monkeypatch):
    provider = _dns(monkeypatch, _FakeResolver(error=dns.resolver.NXDOMAIN()))
    assert provider.search("domain", "nope.invalid") == []


def test_dns_total_failure_raises(monkeypatch):
    provider = _dns(monkeypatch, _FakeResolver(error=dns.exception.Timeout()))
    with pytest.raises(ExternalProviderError):
        provider.search("domain", "example.com")
