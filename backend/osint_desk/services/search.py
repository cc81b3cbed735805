"""Search proxy: fans a query out to the active providers of its category.

A failing provider never fails the search. Its error is logged against its
config and reported next to whatever the other providers returned.
"""

import logging
import uuid
from typing import Any, Optional

from sqlmodel import Session

from osint_desk.core.errors import ExternalProviderError
from osint_desk.metrics.prometheus import searches_total
from osint_desk.models.enums import SearchStatus, SearchType, values
from osint_desk.services import api_configs, search_history
from osint_desk.services.cases import get_case
from osint_desk.services.providers import build_provider
from osint_desk.services.validators import check_choice, require_text

logger = logging.getLogger(__name__)

QUERY_MAX = 255


def run_search(
    session: Session,
    *,
    search_type: str,
    query: str,
    case_id: Optional[uuid.UUID] = None,
) -> dict[str, Any]:
    search_type = check_choice(search_type, "type", values(SearchType))
    query = require_text(query, "query", QUERY_MAX)
    if case_id is not None:
        get_case(session, case_id)

    configs = api_configs.active_configs(session, search_type)
    results: list[dict[str, Any]] = []
    errors: list[dict[str, str]] = []
    providers_called = 0
    failed = 0

    if not configs:
        status = SearchStatus.NO_ACTIVE_PROVIDER.value
        message = f"No active provider configured for {search_type} searches"
    else:
        for config in configs:
            if api_configs.quota_exhausted(config):
                errors.append({"provider": config.provider_name, "message": "daily quota exhausted"})
                continue

            provider = build_provider(config)
            providers_called += 1
            try:
                found = provider.search(search_type, query)
            except ExternalProviderError as e:
                logger.warning("Provider %s failed for %s search: %s", config.provider_name, search_type, e.message)
                api_configs.record_usage(session, config.id, provider.calls, ok=False)
                api_configs.record_error(session, config.id, e.message)
                failed += 1
                errors.append({"provider": config.provider_name, "message": e.message})
                continue
            api_configs.record_usage(session, config.id, provider.calls)
            results.extend(found)

        if not errors:
            status = SearchStatus.OK.value
        elif providers_called > failed:
            status = SearchStatus.PARTIAL.value
        else:
            status = SearchStatus.ERROR.value
        message = f"{len(results)} results from {providers_called} provider(s)"

    row = search_history.record_search(
        session,
        search_type=search_type,
        search_query=query,
        result_count=len(results),
        status=status,
        case_id=case_id,
    )
    searches_total.labels(type=search_type, status=status).inc()

    return {
        "results": results,
        "status": status,
        "message": message,
        "errors": errors,
        "search_id": row.id,
    }
