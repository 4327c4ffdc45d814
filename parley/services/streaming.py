"""
Server-sent event delivery of a finished chat reply.

Replies are computed in full first, then emitted word by word with a fixed
delay so clients can render them progressively.
"""

import asyncio
import json
import re
from typing import Any, AsyncGenerator, Awaitable, Callable

from parley.core.logger import setup_logger
from parley.models.chat import ChatResponse, StreamEvent

logger = setup_logger(__name__)

_WORD_PATTERN = re.compile(r"\S+\s*|\s+")


def split_words(text: str) -> list[str]:
    """Split text into word chunks that keep their trailing whitespace."""
    return _WORD_PATTERN.findall(text)


def sse_event(payload: dict[str, Any]) -> str:
    """Format one SSE ``data:`` frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class ReplyStreamer:
    """Emit a reply as ``{chunk}`` events followed by ``{done}``."""

    def __init__(
        self,
        chunk_delay: float = 0.03,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._chunk_delay = chunk_delay
        self._sleep = sleep

    async def events(self, response: ChatResponse) -> AsyncGenerator[str, None]:
        """Generate Server-Sent Events for one reply."""
        try:
            chunks = split_words(response.message.content)
            for index, chunk in enumerate(chunks):
                yield sse_event(StreamEvent(chunk=chunk).to_payload())
                if index < len(chunks) - 1 and self._chunk_delay > 0:
                    await self._sleep(self._chunk_delay)
        except Exception as e:
            logger.exception(f"Streaming failed: {e}")
            yield sse_event(StreamEvent(error="Streaming interrupted").to_payload())
            return

        yield sse_event(
            StreamEvent(
                done=True,
                thread_id=response.thread_id,
                model_used=response.model_used,
            ).to_payload()
        )
