"""
Authentication provider interface.

Credential issuance happens elsewhere; providers only verify bearer tokens.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated caller."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IAuthProvider(ABC):
    """Abstract interface for token verification."""

    @abstractmethod
    async def verify_token(self, token: str) -> User:
        """
        Verify a bearer token.

        Args:
            token: Raw token (without the "Bearer " prefix)

        Returns:
            The authenticated user

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check whether authentication is enforced.

        Returns:
            False when every request should act as the development user
        """
        pass
