"""
Conversation thread and message models.

Threads persist the ordered message history of an authenticated user.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from parley.models.enums import MessageRole

DEFAULT_THREAD_TITLE = "New Chat"
MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 10000
MAX_THREAD_MESSAGES = 1000
AUTO_TITLE_LENGTH = 50


class MessageMetadata(BaseModel):
    """Per-message metadata."""

    model: Optional[str] = Field(None, description="Model mode that produced the message")
    edited: bool = Field(False, description="Whether the message was edited")
    edited_at: Optional[datetime] = Field(None, alias="editedAt")

    model_config = {"populate_by_name": True}


class MessageCreate(BaseModel):
    """Schema for appending a message to a thread."""

    role: MessageRole
    content: str = Field(..., max_length=MAX_CONTENT_LENGTH)
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)


class Message(MessageCreate):
    """Message stored in a thread."""

    timestamp: datetime


class ThreadSettings(BaseModel):
    """Per-thread sampling settings."""

    model: Optional[str] = Field(None, description="Model mode key (None inherits the user default)")
    temperature: float = Field(0.7, ge=0.0, le=2.0)


class Thread(BaseModel):
    """Conversation thread."""

    thread_id: str = Field(..., description="Thread ID (UUID)")
    owner_id: str = Field(..., description="Owner user ID")
    title: str = Field(DEFAULT_THREAD_TITLE, max_length=MAX_TITLE_LENGTH)
    messages: list[Message] = Field(default_factory=list, max_length=MAX_THREAD_MESSAGES)
    settings: ThreadSettings = Field(default_factory=ThreadSettings)
    pinned: bool = False
    archived: bool = False
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def last_message_preview(self) -> str:
        if not self.messages:
            return ""
        return self.messages[-1].content[:100]


class ThreadUpdate(BaseModel):
    """Schema for updating thread metadata."""

    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    model_mode: Optional[str] = Field(None, alias="modelMode")
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    pinned: Optional[bool] = None
    archived: Optional[bool] = None
    tags: Optional[list[str]] = None

    model_config = {"populate_by_name": True, "protected_namespaces": ()}

    @field_validator("tags")
    @classmethod
    def _lowercase_tags(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        seen: list[str] = []
        for tag in value:
            cleaned = tag.strip().lower()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return seen
