"""
Security helpers for local authentication.

Credential issuance lives outside this service; the helper here mints tokens
compatible with ``LocalAuthProvider`` for development and tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from parley.core.config import Settings


def create_access_token(
    user_id: str,
    settings: Settings,
    expires_minutes: int | None = None,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
) -> str:
    """Create a signed JWT for a local user."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=expires_minutes or settings.LOCAL_JWT_EXPIRE_MINUTES)
    payload: dict[str, object] = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    if email:
        payload["email"] = email
    if display_name:
        payload["name"] = display_name
    if settings.LOCAL_JWT_ISSUER:
        payload["iss"] = settings.LOCAL_JWT_ISSUER
    return jwt.encode(payload, settings.LOCAL_JWT_SECRET, algorithm="HS256")
