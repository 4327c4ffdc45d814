"""
Chat model definitions.

Request/response shapes for the chat endpoints. Field names follow the
camelCase wire format through aliases.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from parley.models.enums import MessageRole


class HistoryEntry(BaseModel):
    """Client-held message used as context by guests."""

    role: MessageRole
    content: str = Field(..., max_length=10000)


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    # Kept untyped so non-string payloads reach the orchestrator's validation
    message: Any = Field(None, description="User message text")
    thread_id: Optional[str] = Field(None, alias="threadId", description="Existing thread ID")
    model_mode: Optional[str] = Field(None, alias="modelMode", description="Model mode override")
    is_guest: bool = Field(False, alias="isGuest")
    guest_session_id: Optional[str] = Field(None, alias="guestSessionId", max_length=100)
    history: list[HistoryEntry] = Field(
        default_factory=list, description="Guest conversation context"
    )

    model_config = {"populate_by_name": True, "protected_namespaces": ()}


class AssistantMessage(BaseModel):
    """Assistant reply payload."""

    role: MessageRole = MessageRole.ASSISTANT
    content: str


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""

    success: bool = True
    message: AssistantMessage
    thread_id: Optional[str] = Field(None, alias="threadId")
    model_used: str = Field(..., alias="modelUsed")
    guest_session_id: Optional[str] = Field(None, alias="guestSessionId")
    remaining_guest_messages: Optional[int] = Field(None, alias="remainingGuestMessages")

    model_config = {"populate_by_name": True, "protected_namespaces": ()}


class StreamEvent(BaseModel):
    """Single server-sent event payload."""

    chunk: Optional[str] = None
    done: Optional[bool] = None
    error: Optional[str] = None
    thread_id: Optional[str] = Field(None, alias="threadId")
    model_used: Optional[str] = Field(None, alias="modelUsed")

    model_config = {"populate_by_name": True, "protected_namespaces": ()}

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
