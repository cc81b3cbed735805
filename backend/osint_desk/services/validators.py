"""Field-level checks shared by the repositories.

Every check raises ``ValidationError`` naming the offending field, so HTTP
callers get a 400 with ``details[0].field`` set.
"""

import json
import uuid
from collections.abc import Iterable
from typing import Any, Optional
from urllib.parse import urlparse

from osint_desk.core.errors import ValidationError


def require_text(value: Any, field: str, max_length: int) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", field=field)
    return value


def optional_text(value: Any, field: str, max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", field=field)
    return value


def check_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    choices = list(choices)
    if hasattr(value, "value"):
        value = value.value
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}", field=field)
    return value


def check_range(value: Any, field: str, lo: int, hi: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", field=field)
    if value < lo or value > hi:
        raise ValidationError(f"{field} must be between {lo} and {hi}", field=field)
    return value


def clean_tags(tags: Any, field: str = "tags") -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, str) or not isinstance(tags, (list, tuple)):
        raise ValidationError(f"{field} must be a list of strings", field=field)
    out: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError(f"{field} must be a list of strings", field=field)
        tag = tag.strip()
        if tag and tag not in out:
            out.append(tag)
    return out


def clean_data(data: Any, field: str = "data") -> dict[str, str]:
    """Free-form key/value payload; values are flattened to strings."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"{field} must be an object", field=field)
    out: dict[str, str] = {}
    for key, value in data.items():
        if value is None:
            out[str(key)] = ""
        elif isinstance(value, str):
            out[str(key)] = value
        elif isinstance(value, (dict, list, tuple)):
            out[str(key)] = json.dumps(value, sort_keys=True, default=str)
        else:
            out[str(key)] = str(value)
    return out


def check_url(value: Any, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a URL", field=field)
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field} must be an http(s) URL", field=field)
    return value.strip().rstrip("/")


def check_uuid(value: Any, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a UUID", field=field) from None


def reject_unknown(fields: dict, allowed: Iterable[str]) -> None:
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise ValidationError(f"cannot update: {', '.join(unknown)}", field=unknown[0])
