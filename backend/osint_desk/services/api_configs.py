"""Third-party API credentials per search category and provider.

The stored ``api_key`` is write-only as far as callers are concerned: read
paths go through ``key_hint`` and never hand the key back.
"""

import logging
import uuid
from typing import Any, Optional

from sqlmodel import Session, select

from osint_desk.core.clock import utcnow
from osint_desk.core.errors import ExternalProviderError, NotFoundError, ValidationError
from osint_desk.models.api_config import ApiConfig
from osint_desk.models.enums import SearchType, values
from osint_desk.services.providers import build_provider, scrub
from osint_desk.services.validators import check_choice, check_url, reject_unknown, require_text

logger = logging.getLogger(__name__)

PROVIDER_NAME_MAX = 100
API_KEY_MAX = 1000
ERROR_LOG_MAX = 4000

UPDATABLE_FIELDS = ("is_active", "api_key", "base_url", "quota_limit")


def key_hint(api_key: Optional[str]) -> str:
    if not api_key:
        return ""
    return "••••" + api_key[-4:] if len(api_key) >= 8 else "••••"


def _check_quota(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("quota_limit must be a non-negative integer", field="quota_limit")
    return value


def upsert_config(
    session: Session,
    *,
    category: str,
    provider_name: str,
    api_key: str,
    base_url: Optional[str] = None,
    quota_limit: Optional[int] = None,
) -> ApiConfig:
    category = check_choice(category, "category", values(SearchType))
    provider_name = require_text(provider_name, "provider_name", PROVIDER_NAME_MAX)
    api_key = require_text(api_key, "api_key", API_KEY_MAX)
    base_url = check_url(base_url, "base_url")
    quota_limit = _check_quota(quota_limit)

    config = session.exec(
        select(ApiConfig).where(ApiConfig.category == category, ApiConfig.provider_name == provider_name)
    ).first()
    now = utcnow()
    if config is None:
        config = ApiConfig(category=category, provider_name=provider_name, created_at=now)
        logger.info("Adding %s provider %s", category, provider_name)
    else:
        logger.info("Replacing credentials for %s provider %s", category, provider_name)
    config.api_key = api_key
    config.base_url = base_url
    config.quota_limit = quota_limit
    config.updated_at = now
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


def get_config(session: Session, config_id: uuid.UUID) -> ApiConfig:
    config = session.get(ApiConfig, config_id)
    if not config:
        raise NotFoundError("API config", config_id)
    return config


def list_configs(session: Session, *, category: Optional[str] = None) -> list[ApiConfig]:
    q = select(ApiConfig).order_by(ApiConfig.category, ApiConfig.provider_name)
    if category:
        q = q.where(ApiConfig.category == check_choice(category, "category", values(SearchType)))
    return list(session.exec(q).all())


def active_configs(session: Session, category: str) -> list[ApiConfig]:
    q = (
        select(ApiConfig)
        .where(ApiConfig.category == category, ApiConfig.is_active == True)  # noqa: E712
        .order_by(ApiConfig.provider_name)
    )
    return list(session.exec(q).all())


def update_config(session: Session, config_id: uuid.UUID, fields: dict[str, Any]) -> ApiConfig:
    config = get_config(session, config_id)
    reject_unknown(fields, UPDATABLE_FIELDS)
    if "is_active" in fields:
        if not isinstance(fields["is_active"], bool):
            raise ValidationError("is_active must be a boolean", field="is_active")
        config.is_active = fields["is_active"]
    if "api_key" in fields:
        config.api_key = require_text(fields["api_key"], "api_key", API_KEY_MAX)
    if "base_url" in fields:
        config.base_url = check_url(fields["base_url"], "base_url")
    if "quota_limit" in fields:
        config.quota_limit = _check_quota(fields["quota_limit"])
    config.updated_at = utcnow()
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


def toggle_active(session: Session, config_id: uuid.UUID, is_active: bool) -> ApiConfig:
    return update_config(session, config_id, {"is_active": is_active})


def delete_config(session: Session, config_id: uuid.UUID) -> None:
    config = get_config(session, config_id)
    category, provider_name = config.category, config.provider_name
    session.delete(config)
    session.commit()
    logger.info("Deleted %s provider %s", category, provider_name)


def _roll_day(config: ApiConfig) -> None:
    # requests_today counts per UTC calendar day
    today = utcnow().date().isoformat()
    if config.usage_date != today:
        config.usage_date = today
        config.requests_today = 0


def current_requests(config: ApiConfig) -> int:
    if config.usage_date != utcnow().date().isoformat():
        return 0
    return config.requests_today


def quota_exhausted(config: ApiConfig) -> bool:
    if config.quota_limit is None:
        return False
    return current_requests(config) >= config.quota_limit


def record_usage(session: Session, config_id: uuid.UUID, calls: int = 1, *, ok: bool = True) -> ApiConfig:
    """Count outbound calls against today's quota; failed and retried calls count too."""
    config = get_config(session, config_id)
    _roll_day(config)
    config.requests_today += max(1, calls)
    if ok:
        config.last_sync = utcnow()
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


def record_error(session: Session, config_id: uuid.UUID, message: str) -> ApiConfig:
    config = get_config(session, config_id)
    entry = f"{utcnow().isoformat()} {scrub(message, config.api_key)}"
    config.error_log = entry[:ERROR_LOG_MAX]
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


def test_connection(session: Session, config_id: uuid.UUID) -> dict[str, Any]:
    """Probe the provider and store the outcome; failures are reported, not raised."""
    config = get_config(session, config_id)
    provider = build_provider(config)
    try:
        message = provider.check()
    except ExternalProviderError as e:
        record_error(session, config_id, e.message)
        logger.warning("Connection test failed for %s: %s", config.provider_name, scrub(e.message, config.api_key))
        return {"ok": False, "message": scrub(e.message, config.api_key)}

    config.error_log = None
    config.last_sync = utcnow()
    session.add(config)
    session.commit()
    return {"ok": True, "message": message}
