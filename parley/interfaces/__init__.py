"""Abstract interfaces for infrastructure abstraction."""

from parley.interfaces.auth_provider import IAuthProvider
from parley.interfaces.provider_client import IProviderClient
from parley.interfaces.text_extractor import ITextExtractor
from parley.interfaces.thread_repository import IThreadRepository
from parley.interfaces.user_preference_repository import IUserPreferenceRepository

__all__ = [
    "IAuthProvider",
    "IProviderClient",
    "ITextExtractor",
    "IThreadRepository",
    "IUserPreferenceRepository",
]
