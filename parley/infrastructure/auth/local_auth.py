"""
Local JWT authentication provider.
"""

from __future__ import annotations

from jose import JWTError, jwt

from parley.core.config import Settings
from parley.core.exceptions import AuthenticationError
from parley.interfaces.auth_provider import IAuthProvider, User


class LocalAuthProvider(IAuthProvider):
    """Local auth provider with HMAC JWT validation."""

    def __init__(self, settings: Settings):
        if not settings.LOCAL_JWT_SECRET:
            raise ValueError("LOCAL_JWT_SECRET must be set for local auth")
        self._settings = settings

    def _decode_token(self, token: str) -> dict[str, object]:
        options = {"verify_iss": bool(self._settings.LOCAL_JWT_ISSUER)}
        return jwt.decode(
            token,
            self._settings.LOCAL_JWT_SECRET,
            algorithms=["HS256"],
            issuer=self._settings.LOCAL_JWT_ISSUER or None,
            options=options,
        )

    async def verify_token(self, token: str) -> User:
        try:
            claims = self._decode_token(token)
        except JWTError as exc:
            raise AuthenticationError(f"Invalid token: {exc}") from exc
        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Invalid token: missing subject")
        return User(
            id=str(subject),
            email=claims.get("email"),
            display_name=claims.get("name"),
        )

    def is_enabled(self) -> bool:
        return True
