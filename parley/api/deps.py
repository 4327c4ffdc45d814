"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that wire repositories, provider
clients and services from the environment configuration.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from parley.core.config import get_settings
from parley.core.exceptions import AuthenticationError
from parley.infrastructure.local.guest_session_store import InMemoryGuestSessionStore
from parley.interfaces.auth_provider import IAuthProvider, User
from parley.interfaces.provider_client import IProviderClient
from parley.interfaces.thread_repository import IThreadRepository
from parley.interfaces.user_preference_repository import IUserPreferenceRepository
from parley.services.ai_gateway import AIResponseGateway
from parley.services.chat_orchestrator import ChatOrchestrator
from parley.services.file_analysis_service import FileAnalysisService
from parley.services.response_normalizer import ResponseNormalizer
from parley.services.streaming import ReplyStreamer


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_thread_repository() -> IThreadRepository:
    """Get thread repository instance."""
    from parley.infrastructure.local.thread_repository import SqliteThreadRepository

    return SqliteThreadRepository()


@lru_cache()
def get_user_preference_repository() -> IUserPreferenceRepository:
    """Get user preference repository instance."""
    from parley.infrastructure.local.user_preference_repository import (
        SqliteUserPreferenceRepository,
    )

    return SqliteUserPreferenceRepository()


@lru_cache()
def get_guest_session_store() -> InMemoryGuestSessionStore:
    """Get guest session store instance."""
    settings = get_settings()
    return InMemoryGuestSessionStore(
        limit=settings.GUEST_MESSAGE_LIMIT,
        ttl_seconds=settings.GUEST_SESSION_TTL_SECONDS,
        max_sessions=settings.GUEST_SESSION_MAX_ENTRIES,
    )


# ===========================================
# Provider / Service Dependencies
# ===========================================


@lru_cache()
def get_provider_clients() -> dict[str, IProviderClient]:
    """Get provider clients keyed by provider identifier."""
    from parley.infrastructure.providers.gemini_client import GeminiProviderClient
    from parley.infrastructure.providers.groq_client import GroqProviderClient

    settings = get_settings()
    timeout = settings.PROVIDER_TIMEOUT_SECONDS
    clients: list[IProviderClient] = [
        GroqProviderClient(settings.GROQ_API_KEY, settings.GROQ_API_BASE, timeout=timeout),
        GeminiProviderClient(settings.GEMINI_API_KEY, settings.GEMINI_API_BASE, timeout=timeout),
    ]
    return {client.name: client for client in clients}


async def close_provider_clients() -> None:
    """Release provider HTTP clients (application shutdown)."""
    if not get_provider_clients.cache_info().currsize:
        return
    for client in get_provider_clients().values():
        await client.aclose()
    get_provider_clients.cache_clear()
    get_ai_gateway.cache_clear()
    get_chat_orchestrator.cache_clear()
    get_file_analysis_service.cache_clear()


@lru_cache()
def get_ai_gateway() -> AIResponseGateway:
    """Get AI response gateway instance."""
    settings = get_settings()
    return AIResponseGateway(
        clients=get_provider_clients(),
        normalizer=ResponseNormalizer(max_depth=settings.NORMALIZER_MAX_DEPTH),
        history_window=settings.HISTORY_WINDOW,
        max_retries=settings.PROVIDER_MAX_RETRIES,
        backoff_seconds=settings.PROVIDER_RETRY_BACKOFF_SECONDS,
    )


@lru_cache()
def get_chat_orchestrator() -> ChatOrchestrator:
    """Get chat orchestrator instance."""
    return ChatOrchestrator(
        gateway=get_ai_gateway(),
        thread_repo=get_thread_repository(),
        preference_repo=get_user_preference_repository(),
        guest_store=get_guest_session_store(),
        max_message_length=get_settings().MAX_MESSAGE_LENGTH,
    )


@lru_cache()
def get_file_analysis_service() -> FileAnalysisService:
    """Get file analysis service instance."""
    from parley.infrastructure.local.text_extractors import default_extractors

    settings = get_settings()
    return FileAnalysisService(
        gateway=get_ai_gateway(),
        extractors=default_extractors(),
        max_bytes=settings.MAX_UPLOAD_BYTES,
        content_char_limit=settings.FILE_CONTENT_CHAR_LIMIT,
    )


def get_reply_streamer() -> ReplyStreamer:
    """Get reply streamer instance."""
    return ReplyStreamer(chunk_delay=get_settings().STREAM_CHUNK_DELAY_SECONDS)


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER == "local":
        from parley.infrastructure.auth.local_auth import LocalAuthProvider

        return LocalAuthProvider(settings)

    if settings.is_production:
        raise RuntimeError("AUTH_PROVIDER=mock is not allowed in production")

    from parley.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=True)


# ===========================================
# User Authentication
# ===========================================


def _parse_bearer(authorization: str) -> str:
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )
    return token


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    With authentication disabled, returns the development user.
    """
    if not auth_provider.is_enabled():
        return User(id="dev_user", email="dev@example.com", display_name="Developer")

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )

    token = _parse_bearer(authorization)
    try:
        return await auth_provider.verify_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )


async def get_optional_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> Optional[User]:
    """Like get_current_user, but a missing header means a guest (None)."""
    if not authorization:
        return None
    return await get_current_user(authorization, auth_provider)


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

ThreadRepo = Annotated[IThreadRepository, Depends(get_thread_repository)]
PreferenceRepo = Annotated[IUserPreferenceRepository, Depends(get_user_preference_repository)]
Gateway = Annotated[AIResponseGateway, Depends(get_ai_gateway)]
Orchestrator = Annotated[ChatOrchestrator, Depends(get_chat_orchestrator)]
FileAnalyzer = Annotated[FileAnalysisService, Depends(get_file_analysis_service)]
Streamer = Annotated[ReplyStreamer, Depends(get_reply_streamer)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
