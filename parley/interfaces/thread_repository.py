"""
Thread repository interface.

Defines the contract for conversation thread persistence. Every operation is
scoped by owner; a thread owned by someone else behaves exactly like a
missing one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from parley.models.thread import MessageCreate, Thread, ThreadUpdate


class IThreadRepository(ABC):
    """Abstract interface for thread persistence."""

    @abstractmethod
    async def create(
        self,
        owner_id: str,
        title: Optional[str] = None,
        model_mode: Optional[str] = None,
    ) -> Thread:
        """
        Create an empty thread.

        Args:
            owner_id: Owner user ID
            title: Optional title (defaults to "New Chat")
            model_mode: Optional model mode stored in the thread settings

        Returns:
            Created thread

        Raises:
            ValidationError: If the title is too long
        """
        pass

    @abstractmethod
    async def get(self, thread_id: str, owner_id: str) -> Thread:
        """
        Get a thread with its messages.

        Raises:
            NotFoundError: If no thread with that ID is owned by the caller
        """
        pass

    @abstractmethod
    async def list(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int = 20,
        include_archived: bool = False,
    ) -> tuple[list[Thread], int]:
        """
        List threads ordered by pinned first, then most recently updated.

        Args:
            owner_id: Owner user ID
            page: 1-based page number
            page_size: Threads per page
            include_archived: Include archived threads

        Returns:
            (threads on the page, total thread count)
        """
        pass

    @abstractmethod
    async def append(self, thread_id: str, owner_id: str, message: MessageCreate) -> Thread:
        """
        Append a single message.

        Raises:
            NotFoundError: If the thread is missing or owned by someone else
            CapacityExceededError: If the thread is full
        """
        pass

    @abstractmethod
    async def append_many(
        self,
        thread_id: str,
        owner_id: str,
        messages: list[MessageCreate],
    ) -> Thread:
        """
        Append several messages atomically: either all are stored or none.

        Raises:
            NotFoundError: If the thread is missing or owned by someone else
            CapacityExceededError: If the thread cannot hold all messages
        """
        pass

    @abstractmethod
    async def update(self, thread_id: str, owner_id: str, update: ThreadUpdate) -> Thread:
        """
        Update thread metadata (title, settings, flags, tags).

        Raises:
            NotFoundError: If the thread is missing or owned by someone else
        """
        pass

    @abstractmethod
    async def update_last_message(self, thread_id: str, owner_id: str, content: str) -> Thread:
        """
        Replace the content of the most recent message and mark it edited.

        Raises:
            NotFoundError: If the thread is missing or owned by someone else
            ValidationError: If the thread has no messages
        """
        pass

    @abstractmethod
    async def delete(self, thread_id: str, owner_id: str) -> None:
        """
        Hard delete a thread and its messages.

        Raises:
            NotFoundError: If the thread is missing or owned by someone else
        """
        pass

    @abstractmethod
    async def clear_messages(self, thread_id: str, owner_id: str) -> Thread:
        """
        Remove every message while keeping the thread.

        Raises:
            NotFoundError: If the thread is missing or owned by someone else
        """
        pass

    @abstractmethod
    async def search(self, owner_id: str, query: str, limit: int = 20) -> list[Thread]:
        """
        Search non-archived threads by title, message content or tag.

        Args:
            owner_id: Owner user ID
            query: Case-insensitive search text
            limit: Max results

        Returns:
            Matching threads, most recently updated first
        """
        pass
