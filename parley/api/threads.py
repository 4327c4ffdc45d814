"""
Thread management API endpoints.
"""

import math
from typing import Any, Optional

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from parley.api.deps import CurrentUser, ThreadRepo
from parley.core.exceptions import ValidationError
from parley.core.model_modes import MODEL_MODES, is_known_mode
from parley.models.thread import MAX_CONTENT_LENGTH, MAX_TITLE_LENGTH, Thread, ThreadUpdate

router = APIRouter()


class ThreadCreateRequest(BaseModel):
    """Request body for creating a thread."""

    title: Optional[str] = Field(None, max_length=MAX_TITLE_LENGTH)
    model_mode: Optional[str] = Field(None, alias="modelMode")

    model_config = {"populate_by_name": True, "protected_namespaces": ()}


class LastMessageUpdate(BaseModel):
    """Request body for editing the last message."""

    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)


def _check_mode(model_mode: Optional[str]) -> None:
    if model_mode is not None and not is_known_mode(model_mode):
        raise ValidationError(
            f"Invalid model mode '{model_mode}'. Choose one of: {', '.join(MODEL_MODES)}"
        )


def _summary(thread: Thread) -> dict[str, Any]:
    return {
        "threadId": thread.thread_id,
        "title": thread.title,
        "messageCount": thread.message_count,
        "lastMessagePreview": thread.last_message_preview,
        "updatedAt": thread.updated_at,
        "pinned": thread.pinned,
        "archived": thread.archived,
    }


def _detail(thread: Thread) -> dict[str, Any]:
    return {
        "threadId": thread.thread_id,
        "title": thread.title,
        "messages": [
            {
                "role": message.role.value,
                "content": message.content,
                "timestamp": message.timestamp,
                "metadata": message.metadata.model_dump(by_alias=True, exclude_none=True),
            }
            for message in thread.messages
        ],
        "settings": thread.settings.model_dump(),
        "pinned": thread.pinned,
        "archived": thread.archived,
        "tags": thread.tags,
        "createdAt": thread.created_at,
        "updatedAt": thread.updated_at,
    }


@router.get("/threads")
async def list_threads(
    user: CurrentUser,
    repo: ThreadRepo,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    include_archived: bool = Query(False, alias="includeArchived"),
):
    """List the caller's threads, pinned first then most recently updated."""
    threads, total = await repo.list(user.id, page=page, page_size=limit, include_archived=include_archived)
    return {
        "threads": [_summary(thread) for thread in threads],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }


@router.get("/threads/search")
async def search_threads(
    user: CurrentUser,
    repo: ThreadRepo,
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(20, ge=1, le=100),
):
    """Search threads by title, message content or tag."""
    threads = await repo.search(user.id, q, limit=limit)
    return {"threads": [_summary(thread) for thread in threads], "query": q}


@router.post("/thread", status_code=status.HTTP_201_CREATED)
async def create_thread(
    user: CurrentUser,
    repo: ThreadRepo,
    body: Optional[ThreadCreateRequest] = None,
):
    """Create an empty thread."""
    body = body or ThreadCreateRequest()
    _check_mode(body.model_mode)
    thread = await repo.create(user.id, title=body.title, model_mode=body.model_mode)
    return _detail(thread)


@router.get("/thread/{thread_id}")
async def get_thread(thread_id: str, user: CurrentUser, repo: ThreadRepo):
    """Get a thread with all its messages."""
    thread = await repo.get(thread_id, user.id)
    return _detail(thread)


@router.patch("/thread/{thread_id}")
async def update_thread(
    thread_id: str,
    update: ThreadUpdate,
    user: CurrentUser,
    repo: ThreadRepo,
):
    """Update title, model mode, temperature, flags or tags."""
    _check_mode(update.model_mode)
    thread = await repo.update(thread_id, user.id, update)
    return _detail(thread)


@router.delete("/thread/{thread_id}")
async def delete_thread(thread_id: str, user: CurrentUser, repo: ThreadRepo):
    """Delete a thread and all its messages."""
    await repo.delete(thread_id, user.id)
    return {
        "success": True,
        "message": "Thread deleted successfully",
        "threadId": thread_id,
    }


@router.delete("/thread/{thread_id}/messages")
async def clear_thread_messages(thread_id: str, user: CurrentUser, repo: ThreadRepo):
    """Remove every message from a thread."""
    await repo.clear_messages(thread_id, user.id)
    return {
        "success": True,
        "message": "All messages cleared",
        "threadId": thread_id,
    }


@router.patch("/thread/{thread_id}/messages/last")
async def edit_last_message(
    thread_id: str,
    body: LastMessageUpdate,
    user: CurrentUser,
    repo: ThreadRepo,
):
    """Edit the most recent message of a thread."""
    thread = await repo.update_last_message(thread_id, user.id, body.content)
    return _detail(thread)
