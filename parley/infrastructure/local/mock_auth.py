"""
Mock authentication provider for local development.
"""

from parley.core.exceptions import AuthenticationError
from parley.interfaces.auth_provider import IAuthProvider, User


class MockAuthProvider(IAuthProvider):
    """Mock auth provider that treats the bearer token as the user ID."""

    def __init__(self, enabled: bool = True):
        """
        Initialize mock auth provider.

        Args:
            enabled: Whether a bearer token is required
        """
        self._enabled = enabled
        self._mock_users = {
            "dev_user": User(
                id="dev_user",
                email="dev@example.com",
                display_name="Developer",
            ),
            "test_user": User(
                id="test_user",
                email="test@example.com",
                display_name="Test User",
            ),
        }

    async def verify_token(self, token: str) -> User:
        """
        Verify token - in mock mode, token is treated as user_id.

        Args:
            token: User ID (in mock mode)

        Returns:
            Mock user
        """
        token = token.strip()
        if not token:
            raise AuthenticationError("Empty token")
        if token in self._mock_users:
            return self._mock_users[token]
        if "@" in token:
            return User(id=token, email=token, display_name=token)
        return User(id=token, email=f"{token}@example.com", display_name=token)

    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        return self._enabled
