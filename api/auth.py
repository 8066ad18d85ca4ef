"""
Admin authentication (shared secret).

The admin logs in with ADMIN_PASSWORD and receives an httponly cookie holding
a token derived from that secret. Destructive catalog operations depend on
`require_admin`.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from fastapi import Cookie, Depends

from config import Settings, get_settings
from domain.errors import UnauthorizedError

AUTH_COOKIE = "auth_token"
AUTH_COOKIE_MAX_AGE = 3600  # seconds


def session_token(settings: Settings) -> str:
    """Cookie value for an authenticated admin (changes when the password changes)."""

    return hmac.new(settings.admin_password.encode(), b"bookstore-admin-session", hashlib.sha256).hexdigest()


def require_admin(
    auth_token: Optional[str] = Cookie(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Dependency: reject the request unless the admin cookie is valid."""

    if not settings.admin_password or not auth_token:
        raise UnauthorizedError("Unauthorized. Please log in as administrator.")
    if not hmac.compare_digest(auth_token, session_token(settings)):
        raise UnauthorizedError("Unauthorized. Please log in as administrator.")
