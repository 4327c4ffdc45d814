"""
Unit tests for the chat orchestrator.

Uses the real SQLite repositories with a stubbed gateway.
"""

import asyncio

import pytest

from parley.core.exceptions import (
    CapacityExceededError,
    GuestLimitExceeded,
    NotFoundError,
    ValidationError,
)
from parley.infrastructure.local.guest_session_store import InMemoryGuestSessionStore
from parley.infrastructure.local.thread_repository import SqliteThreadRepository
from parley.infrastructure.local.user_preference_repository import SqliteUserPreferenceRepository
from parley.interfaces.auth_provider import User
from parley.models.chat import ChatRequest, HistoryEntry
from parley.models.enums import MessageRole
from parley.models.thread import MAX_THREAD_MESSAGES, MessageCreate
from parley.services.chat_orchestrator import ChatOrchestrator

USER = User(id="user-1", email="user-1@example.com", display_name="User One")


class StubGateway:
    """Records calls and answers with a fixed reply."""

    def __init__(self, reply: str = "Hi there!"):
        self.reply = reply
        self.calls: list[tuple[list, str]] = []

    async def get_reply(self, history, model_mode, system_prompt=None):
        self.calls.append((list(history), model_mode))
        return self.reply


@pytest.fixture
def thread_repo(session_factory):
    return SqliteThreadRepository(session_factory)


@pytest.fixture
def preference_repo(session_factory):
    return SqliteUserPreferenceRepository(session_factory)


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def guest_store():
    return InMemoryGuestSessionStore(limit=5)


@pytest.fixture
def orchestrator(gateway, thread_repo, preference_repo, guest_store):
    return ChatOrchestrator(
        gateway=gateway,
        thread_repo=thread_repo,
        preference_repo=preference_repo,
        guest_store=guest_store,
        max_message_length=4000,
    )


# ============================================
# Validation
# ============================================


class TestValidation:
    @pytest.mark.parametrize("message", [None, "", "   \n\t", 42, {"text": "hi"}, "x" * 4001])
    @pytest.mark.asyncio
    async def test_invalid_messages_rejected_before_side_effects(
        self, orchestrator, gateway, thread_repo, message
    ):
        with pytest.raises(ValidationError):
            await orchestrator.send(ChatRequest(message=message), USER)

        assert gateway.calls == []
        threads, total = await thread_repo.list(USER.id)
        assert total == 0

    @pytest.mark.asyncio
    async def test_message_is_trimmed(self, orchestrator, gateway):
        await orchestrator.send(ChatRequest(message="  Hello  "), None)

        history, _ = gateway.calls[0]
        assert history[-1].content == "Hello"


# ============================================
# Authenticated flow
# ============================================


class TestAuthenticated:
    @pytest.mark.asyncio
    async def test_first_message_creates_thread_and_persists_pair(
        self, orchestrator, thread_repo
    ):
        response = await orchestrator.send(ChatRequest(message="Hello"), USER)

        assert response.success is True
        assert response.message.role == MessageRole.ASSISTANT
        assert response.message.content == "Hi there!"
        assert response.model_used == "fast"
        assert response.thread_id

        thread = await thread_repo.get(response.thread_id, USER.id)
        assert [(m.role, m.content) for m in thread.messages] == [
            (MessageRole.USER, "Hello"),
            (MessageRole.ASSISTANT, "Hi there!"),
        ]
        assert thread.messages[1].metadata.model == "fast"
        assert thread.title == "Hello"

    @pytest.mark.asyncio
    async def test_existing_thread_history_is_sent(self, orchestrator, gateway, thread_repo):
        thread = await thread_repo.create(USER.id)
        await thread_repo.append_many(
            thread.thread_id,
            USER.id,
            [
                MessageCreate(role=MessageRole.USER, content="Earlier question"),
                MessageCreate(role=MessageRole.ASSISTANT, content="Earlier answer"),
            ],
        )

        await orchestrator.send(ChatRequest(message="Follow up", thread_id=thread.thread_id), USER)

        history, _ = gateway.calls[0]
        assert [m.content for m in history] == ["Earlier question", "Earlier answer", "Follow up"]
        stored = await thread_repo.get(thread.thread_id, USER.id)
        assert stored.message_count == 4

    @pytest.mark.asyncio
    async def test_foreign_thread_is_not_found(self, orchestrator, gateway, thread_repo):
        thread = await thread_repo.create("someone-else")

        with pytest.raises(NotFoundError):
            await orchestrator.send(ChatRequest(message="Hi", thread_id=thread.thread_id), USER)
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_full_thread_is_rejected_before_provider_call(
        self, orchestrator, gateway, thread_repo
    ):
        thread = await thread_repo.create(USER.id)
        # One short of the cap: the user/assistant pair would not fit
        for start in range(0, MAX_THREAD_MESSAGES - 1, 100):
            count = min(100, MAX_THREAD_MESSAGES - 1 - start)
            await thread_repo.append_many(
                thread.thread_id,
                USER.id,
                [MessageCreate(role=MessageRole.USER, content=f"m{start + i}") for i in range(count)],
            )

        with pytest.raises(CapacityExceededError):
            await orchestrator.send(ChatRequest(message="One more", thread_id=thread.thread_id), USER)

        assert gateway.calls == []
        stored = await thread_repo.get(thread.thread_id, USER.id)
        assert stored.message_count == MAX_THREAD_MESSAGES - 1

    @pytest.mark.asyncio
    async def test_long_reply_is_truncated_when_stored(self, orchestrator, gateway, thread_repo):
        gateway.reply = "y" * 12000

        response = await orchestrator.send(ChatRequest(message="Essay please"), USER)

        assert len(response.message.content) == 12000
        thread = await thread_repo.get(response.thread_id, USER.id)
        assert len(thread.messages[-1].content) == 10000


# ============================================
# Model precedence
# ============================================


class TestModelResolution:
    @pytest.mark.asyncio
    async def test_default_is_fast(self, orchestrator):
        assert await orchestrator.resolve_model(None, None, USER.id) == "fast"

    @pytest.mark.asyncio
    async def test_user_preference_beats_default(self, orchestrator, preference_repo):
        await preference_repo.set_model_mode(USER.id, "creative")

        assert await orchestrator.resolve_model(None, None, USER.id) == "creative"

    @pytest.mark.asyncio
    async def test_thread_setting_beats_user_preference(
        self, orchestrator, preference_repo, thread_repo
    ):
        await preference_repo.set_model_mode(USER.id, "creative")
        thread = await thread_repo.create(USER.id, model_mode="fast")

        assert await orchestrator.resolve_model(None, thread, USER.id) == "fast"

    @pytest.mark.asyncio
    async def test_request_override_wins(self, orchestrator, thread_repo):
        thread = await thread_repo.create(USER.id, model_mode="fast")

        assert await orchestrator.resolve_model("creative", thread, USER.id) == "creative"

    @pytest.mark.asyncio
    async def test_unknown_modes_are_skipped(self, orchestrator, preference_repo):
        await preference_repo.set_model_mode(USER.id, "creative")

        assert await orchestrator.resolve_model("warp-speed", None, USER.id) == "creative"

    @pytest.mark.asyncio
    async def test_thread_mode_is_used_for_send(self, orchestrator, gateway, thread_repo):
        thread = await thread_repo.create(USER.id, model_mode="creative")

        response = await orchestrator.send(
            ChatRequest(message="Write a poem", thread_id=thread.thread_id), USER
        )

        assert response.model_used == "creative"
        assert gateway.calls[0][1] == "creative"


# ============================================
# Guest flow
# ============================================


class TestGuest:
    @pytest.mark.asyncio
    async def test_guest_reply_is_not_persisted(self, orchestrator, thread_repo):
        response = await orchestrator.send(ChatRequest(message="Hello", is_guest=True), USER)

        assert response.thread_id is None
        assert response.guest_session_id.startswith("guest-")
        assert response.remaining_guest_messages == 4
        _, total = await thread_repo.list(USER.id)
        assert total == 0

    @pytest.mark.asyncio
    async def test_guest_history_is_forwarded(self, orchestrator, gateway):
        request = ChatRequest(
            message="And then?",
            guest_session_id="guest-abc",
            history=[
                HistoryEntry(role=MessageRole.USER, content="Tell me a story"),
                HistoryEntry(role=MessageRole.ASSISTANT, content="Once upon a time"),
            ],
        )

        await orchestrator.send(request, None)

        history, model_mode = gateway.calls[0]
        assert [m.content for m in history] == ["Tell me a story", "Once upon a time", "And then?"]
        assert model_mode == "fast"

    @pytest.mark.asyncio
    async def test_sixth_guest_message_is_refused_without_provider_call(
        self, orchestrator, gateway
    ):
        request = ChatRequest(message="Hi", guest_session_id="guest-xyz")
        remaining = [
            (await orchestrator.send(request, None)).remaining_guest_messages for _ in range(5)
        ]

        with pytest.raises(GuestLimitExceeded):
            await orchestrator.send(request, None)

        assert remaining == [4, 3, 2, 1, 0]
        assert len(gateway.calls) == 5

    @pytest.mark.asyncio
    async def test_guests_without_session_id_share_the_client_allowance(self, orchestrator, gateway):
        request = ChatRequest(message="Hi", is_guest=True)
        for _ in range(5):
            await orchestrator.send(request, None, client_key="203.0.113.7")

        with pytest.raises(GuestLimitExceeded):
            await orchestrator.send(request, None, client_key="203.0.113.7")
        with pytest.raises(GuestLimitExceeded):
            await orchestrator.send(
                ChatRequest(message="Hi", guest_session_id="guest-invented"),
                None,
                client_key="203.0.113.7",
            )

        assert len(gateway.calls) == 5

    @pytest.mark.asyncio
    async def test_cancelled_guest_send_gives_the_slot_back(
        self, thread_repo, preference_repo, guest_store
    ):
        started = asyncio.Event()

        class HangingGateway:
            async def get_reply(self, history, model_mode, system_prompt=None):
                started.set()
                await asyncio.Event().wait()

        orchestrator = ChatOrchestrator(HangingGateway(), thread_repo, preference_repo, guest_store)
        task = asyncio.create_task(
            orchestrator.send(ChatRequest(message="Hi", guest_session_id="guest-c"), None)
        )
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await guest_store.remaining("guest-c") == 5
