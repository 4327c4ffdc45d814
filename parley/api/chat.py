"""
Chat API endpoint.

Main interface for sending messages as a guest or an authenticated user.
"""

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from parley.api.deps import Orchestrator, OptionalUser, Streamer
from parley.models.chat import ChatRequest, ChatResponse

router = APIRouter()


def _client_key(http_request: Request) -> Optional[str]:
    """Remote host used to count guests that send no session id."""
    return http_request.client.host if http_request.client else None


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: ChatRequest,
    http_request: Request,
    user: OptionalUser,
    orchestrator: Orchestrator,
):
    """
    Send a message and receive the assistant's reply.

    Without credentials (or with ``isGuest``) the message is answered without
    persistence and counts against the guest allowance. Authenticated callers
    get the pair stored in the given thread, or in a new one when
    ``threadId`` is omitted.
    """
    return await orchestrator.send(request, user, _client_key(http_request))


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    http_request: Request,
    user: OptionalUser,
    orchestrator: Orchestrator,
    streamer: Streamer,
):
    """
    Chat with streaming response (Server-Sent Events).

    The reply is computed first, so validation and ownership errors are
    reported as regular HTTP errors before the stream opens.
    """
    response = await orchestrator.send(request, user, _client_key(http_request))

    return StreamingResponse(
        streamer.events(response),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering for nginx
        },
    )
