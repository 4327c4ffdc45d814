"""
AI response gateway.

Selects a provider client by model mode, sends a bounded history window,
retries transient upstream failures and always hands back a non-empty string.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from parley.core.exceptions import (
    ProviderError,
    ProviderHTTPError,
    ProviderTransportError,
    ProviderUnavailable,
)
from parley.core.logger import setup_logger
from parley.core.model_modes import MODEL_MODES, resolve_mode
from parley.interfaces.provider_client import IProviderClient
from parley.models.thread import Message
from parley.services.response_normalizer import ResponseNormalizer

logger = setup_logger(__name__)

FALLBACK_REPLY = "I'm currently unable to process your request. Please try again in a moment."
NO_CONTENT_REPLY = (
    "I received a response but couldn't find any readable content in it. "
    "Please try rephrasing your message."
)
DEFAULT_SYSTEM_PROMPT = (
    "You are Parley, a friendly and knowledgeable assistant. "
    "Answer clearly and concisely, use Markdown when it helps readability, "
    "and say so when you are not sure about something."
)
PREVIEW_LENGTH = 100


class RetryState(str, Enum):
    """States of a single gateway call."""

    IDLE = "idle"
    SENDING = "sending"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


class RetryStateMachine:
    """Retry bookkeeping for one provider call.

    ``Idle -> Sending -> {Success | Retrying -> Sending | Failed}``. Only 5xx
    responses and transport failures (including timeouts) are retried.
    """

    def __init__(self, max_retries: int = 2, backoff_seconds: float = 1.0):
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.state = RetryState.IDLE
        self.attempts = 0
        self.last_error: Optional[Exception] = None

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def is_terminal(self) -> bool:
        return self.state in (RetryState.SUCCESS, RetryState.FAILED)

    def start_attempt(self) -> None:
        if self.state not in (RetryState.IDLE, RetryState.RETRYING):
            raise RuntimeError(f"Cannot send from state {self.state.value}")
        self.state = RetryState.SENDING
        self.attempts += 1

    def succeed(self) -> None:
        self._require_sending()
        self.state = RetryState.SUCCESS

    def fail(self, error: Exception) -> RetryState:
        """Record a failed attempt and return the next state."""
        self._require_sending()
        self.last_error = error
        if self.is_retryable(error) and self.attempts < self.max_attempts:
            self.state = RetryState.RETRYING
        else:
            self.state = RetryState.FAILED
        return self.state

    def next_delay(self) -> float:
        """Linear backoff: ``backoff_seconds * attempts so far``."""
        return self.backoff_seconds * self.attempts

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        if isinstance(error, ProviderHTTPError):
            return error.is_server_error
        return isinstance(error, ProviderTransportError)

    def _require_sending(self) -> None:
        if self.state is not RetryState.SENDING:
            raise RuntimeError(f"No attempt in flight (state={self.state.value})")


class AIResponseGateway:
    """Never-failing entry point for model replies."""

    def __init__(
        self,
        clients: Mapping[str, IProviderClient],
        normalizer: Optional[ResponseNormalizer] = None,
        history_window: int = 10,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._clients = dict(clients)
        self._normalizer = normalizer or ResponseNormalizer()
        self._history_window = history_window
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

    def available_modes(self) -> list[str]:
        """Model modes whose provider client has a credential."""
        modes = []
        for mode, config in MODEL_MODES.items():
            client = self._clients.get(config.provider)
            if client is not None and client.is_configured():
                modes.append(mode)
        return modes

    def build_messages(
        self,
        history: Sequence[Message],
        system_prompt: Optional[str] = None,
    ) -> list[dict[str, str]]:
        """System prompt followed by the most recent history entries."""
        outbound = [{"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT}]
        window = list(history)[-self._history_window:] if self._history_window > 0 else []
        for entry in window:
            if entry.role.value == "system":
                continue
            outbound.append({"role": entry.role.value, "content": entry.content})
        return outbound

    async def get_reply(
        self,
        history: Sequence[Message],
        model_mode: Optional[str],
        system_prompt: Optional[str] = None,
    ) -> str:
        """Return the model's reply, or a fixed fallback string on any failure."""
        mode, config = resolve_mode(model_mode)
        if model_mode and mode != model_mode:
            logger.warning(f"Unknown model mode '{model_mode}', using '{mode}'")

        client = self._clients.get(config.provider)
        if client is None:
            logger.error(f"No provider client registered for '{config.provider}'")
            return FALLBACK_REPLY

        messages = self.build_messages(history, system_prompt)
        machine = RetryStateMachine(self._max_retries, self._backoff_seconds)

        while True:
            machine.start_attempt()
            try:
                payload = await client.send(messages, config)
            except ProviderError as e:
                next_state = machine.fail(e)
                if isinstance(e, ProviderUnavailable):
                    logger.error(f"[{config.provider}] {e.message}")
                else:
                    logger.warning(
                        f"[{config.provider}/{config.model}] attempt {machine.attempts} failed: {e.message}"
                    )
                if next_state is RetryState.FAILED:
                    return FALLBACK_REPLY
                await self._sleep(machine.next_delay())
                continue
            except Exception as e:
                logger.exception(f"[{config.provider}] unexpected provider failure: {e}")
                return FALLBACK_REPLY

            machine.succeed()
            break

        text = self._normalizer.normalize(payload)
        if not text.strip():
            logger.warning(f"[{config.provider}/{config.model}] response had no readable content")
            return NO_CONTENT_REPLY

        logger.info(
            f"[{config.provider}/{config.model}] reply after {machine.attempts} attempt(s): "
            f"{text[:PREVIEW_LENGTH]!r}"
        )
        return text
