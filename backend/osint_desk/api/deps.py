import hmac
from typing import Optional

from fastapi import Header

from osint_desk.core.config import settings
from osint_desk.core.errors import AuthenticationError


def require_admin_key(x_admin_key: Optional[str] = Header(default=None)) -> None:
    if not x_admin_key or not hmac.compare_digest(x_admin_key, settings.admin_api_key):
        raise AuthenticationError("Invalid admin key")
