"""
Chat orchestrator.

Coordinates one "send message" request: validation, identity, model
resolution, thread loading, the gateway call and persistence of the
user/assistant pair.
"""

import asyncio
from typing import Any, Optional

from parley.core.exceptions import CapacityExceededError, ValidationError
from parley.core.logger import setup_logger
from parley.core.model_modes import DEFAULT_MODE, is_known_mode
from parley.infrastructure.local.guest_session_store import InMemoryGuestSessionStore
from parley.interfaces.auth_provider import User
from parley.interfaces.thread_repository import IThreadRepository
from parley.interfaces.user_preference_repository import IUserPreferenceRepository
from parley.models.chat import AssistantMessage, ChatRequest, ChatResponse
from parley.models.enums import MessageRole
from parley.models.thread import (
    MAX_CONTENT_LENGTH,
    MAX_THREAD_MESSAGES,
    Message,
    MessageCreate,
    MessageMetadata,
    Thread,
)
from parley.services.ai_gateway import AIResponseGateway
from parley.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


class ChatOrchestrator:
    """Request-level coordinator for chat sends."""

    def __init__(
        self,
        gateway: AIResponseGateway,
        thread_repo: IThreadRepository,
        preference_repo: IUserPreferenceRepository,
        guest_store: InMemoryGuestSessionStore,
        max_message_length: int = 4000,
    ):
        self._gateway = gateway
        self._thread_repo = thread_repo
        self._preference_repo = preference_repo
        self._guest_store = guest_store
        self._max_message_length = max_message_length

    def validate_message(self, message: Any) -> str:
        """Return the trimmed message text or raise ValidationError."""
        if not isinstance(message, str):
            raise ValidationError("Message must be a string")
        text = message.strip()
        if not text:
            raise ValidationError("Message content is required")
        if len(text) > self._max_message_length:
            raise ValidationError(
                f"Message must be at most {self._max_message_length} characters"
            )
        return text

    async def resolve_model(
        self,
        requested: Optional[str],
        thread: Optional[Thread],
        user_id: Optional[str],
    ) -> str:
        """Request override, then thread setting, then user default, then "fast"."""
        if is_known_mode(requested):
            return requested
        if thread is not None and is_known_mode(thread.settings.model):
            return thread.settings.model
        if user_id:
            preference = await self._preference_repo.get(user_id)
            if preference and is_known_mode(preference.model_mode):
                return preference.model_mode
        return DEFAULT_MODE

    async def send(
        self,
        request: ChatRequest,
        user: Optional[User],
        client_key: Optional[str] = None,
    ) -> ChatResponse:
        """Handle one chat send for a guest or an authenticated user.

        ``client_key`` identifies the caller (e.g. remote host) so guests
        cannot reset their allowance by omitting the session id.
        """
        text = self.validate_message(request.message)
        if user is None or request.is_guest:
            return await self._send_as_guest(text, request, client_key)
        return await self._send_authenticated(text, request, user)

    async def _send_as_guest(
        self, text: str, request: ChatRequest, client_key: Optional[str]
    ) -> ChatResponse:
        session_id = await self._guest_store.resolve_session_id(request.guest_session_id, client_key)
        model_mode = await self.resolve_model(request.model_mode, None, None)

        remaining = await self._guest_store.reserve(session_id)
        now = now_utc()
        history = [
            Message(role=entry.role, content=entry.content, timestamp=now)
            for entry in request.history
        ]
        history.append(Message(role=MessageRole.USER, content=text, timestamp=now))

        try:
            reply = await self._gateway.get_reply(history, model_mode)
        except asyncio.CancelledError:
            await self._guest_store.release(session_id)
            raise

        logger.info(f"Guest reply sent (session={session_id}, model={model_mode}, remaining={remaining})")
        return ChatResponse(
            message=AssistantMessage(content=reply),
            thread_id=None,
            model_used=model_mode,
            guest_session_id=session_id,
            remaining_guest_messages=remaining,
        )

    async def _send_authenticated(self, text: str, request: ChatRequest, user: User) -> ChatResponse:
        if request.thread_id:
            thread = await self._thread_repo.get(request.thread_id, user.id)
        else:
            thread = await self._thread_repo.create(
                user.id,
                model_mode=request.model_mode if is_known_mode(request.model_mode) else None,
            )
            logger.info(f"Thread created: {thread.thread_id} for user {user.id}")

        if thread.message_count + 2 > MAX_THREAD_MESSAGES:
            raise CapacityExceededError(
                f"Thread has reached the maximum of {MAX_THREAD_MESSAGES} messages",
                details={"thread_id": thread.thread_id, "message_count": thread.message_count},
            )

        model_mode = await self.resolve_model(request.model_mode, thread, user.id)
        user_message = MessageCreate(role=MessageRole.USER, content=text)
        history = list(thread.messages)
        history.append(Message(role=MessageRole.USER, content=text, timestamp=now_utc()))

        reply = await self._gateway.get_reply(history, model_mode)

        # Both messages are written together so an abandoned request stores neither
        await self._thread_repo.append_many(
            thread.thread_id,
            user.id,
            [
                user_message,
                MessageCreate(
                    role=MessageRole.ASSISTANT,
                    content=reply[:MAX_CONTENT_LENGTH],
                    metadata=MessageMetadata(model=model_mode),
                ),
            ],
        )

        logger.info(f"Message sent in thread: {thread.thread_id} using model: {model_mode}")
        return ChatResponse(
            message=AssistantMessage(content=reply),
            thread_id=thread.thread_id,
            model_used=model_mode,
        )
