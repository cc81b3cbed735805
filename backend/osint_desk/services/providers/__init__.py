from osint_desk.core.config import settings
from osint_desk.models.api_config import ApiConfig
from osint_desk.services.providers.base import ProviderConfig, SearchProvider, scrub
from osint_desk.services.providers.dns_lookup import DnsProvider
from osint_desk.services.providers.http_api import HttpApiProvider
from osint_desk.services.providers.rdap import RdapProvider

__all__ = ["ProviderConfig", "SearchProvider", "build_provider", "scrub"]


def build_provider(config: ApiConfig) -> SearchProvider:
    """Pick the adapter by provider name; unknown names are generic HTTP APIs."""
    pc = ProviderConfig(
        name=config.provider_name,
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=settings.provider_timeout_seconds,
        max_retries=settings.provider_max_retries,
    )
    key = config.provider_name.strip().lower()
    if key == "dns":
        return DnsProvider(pc, lifetime=settings.dns_lifetime_seconds)
    if key == "rdap":
        return RdapProvider(pc, default_base_url=settings.rdap_base_url)
    return HttpApiProvider(pc)
