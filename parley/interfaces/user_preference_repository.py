"""
User preference repository interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from parley.models.user import UserPreference


class IUserPreferenceRepository(ABC):
    """Abstract interface for per-user preference persistence."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserPreference]:
        """
        Get stored preferences.

        Args:
            user_id: User ID

        Returns:
            Preferences, or None if the user never saved any
        """
        pass

    @abstractmethod
    async def set_model_mode(self, user_id: str, model_mode: str) -> UserPreference:
        """
        Store the user's default model mode.

        Args:
            user_id: User ID
            model_mode: Registered model mode key

        Returns:
            Updated preferences
        """
        pass
