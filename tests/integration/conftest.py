"""Fixtures for HTTP-level tests against the FastAPI app."""

import pytest
from httpx import ASGITransport, AsyncClient

from main import create_app
from parley.api import deps
from parley.infrastructure.local.guest_session_store import InMemoryGuestSessionStore
from parley.infrastructure.local.mock_auth import MockAuthProvider
from parley.infrastructure.local.text_extractors import PlainTextExtractor
from parley.infrastructure.local.thread_repository import SqliteThreadRepository
from parley.infrastructure.local.user_preference_repository import SqliteUserPreferenceRepository
from parley.services.ai_gateway import AIResponseGateway
from parley.services.chat_orchestrator import ChatOrchestrator
from parley.services.file_analysis_service import FileAnalysisService
from parley.services.streaming import ReplyStreamer


class StaticProviderClient:
    """Provider client that always answers with the same payload."""

    def __init__(self, name: str, payload, configured: bool = True):
        self.name = name
        self.payload = payload
        self.configured = configured
        self.calls = 0

    async def send(self, messages, config):
        self.calls += 1
        return self.payload

    def is_configured(self) -> bool:
        return self.configured

    async def aclose(self) -> None:
        return None


@pytest.fixture
def provider_clients():
    return {
        "groq": StaticProviderClient("groq", {"role": "assistant", "content": "Hi there!"}),
        "gemini": StaticProviderClient("gemini", {"parts": [{"text": "Once upon a time"}]}, configured=False),
    }


@pytest.fixture
def app(session_factory, provider_clients):
    """App with every service wired to in-memory backends."""
    application = create_app()

    thread_repo = SqliteThreadRepository(session_factory)
    preference_repo = SqliteUserPreferenceRepository(session_factory)
    gateway = AIResponseGateway(provider_clients)
    guest_store = InMemoryGuestSessionStore(limit=2)
    orchestrator = ChatOrchestrator(gateway, thread_repo, preference_repo, guest_store)
    file_service = FileAnalysisService(gateway, [PlainTextExtractor()], max_bytes=1024)

    overrides = {
        deps.get_thread_repository: lambda: thread_repo,
        deps.get_user_preference_repository: lambda: preference_repo,
        deps.get_ai_gateway: lambda: gateway,
        deps.get_chat_orchestrator: lambda: orchestrator,
        deps.get_file_analysis_service: lambda: file_service,
        deps.get_reply_streamer: lambda: ReplyStreamer(chunk_delay=0),
        deps.get_auth_provider: lambda: MockAuthProvider(),
    }
    application.dependency_overrides.update(overrides)
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer dev_user"}
