"""
SQLite implementation of thread repository.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import uuid4

from sqlalchemy import String, and_, cast, func, or_, select

from parley.core.exceptions import CapacityExceededError, NotFoundError, ValidationError
from parley.infrastructure.local.database import ThreadMessageORM, ThreadORM, get_session_factory
from parley.interfaces.thread_repository import IThreadRepository
from parley.models.enums import MessageRole
from parley.models.thread import (
    AUTO_TITLE_LENGTH,
    DEFAULT_THREAD_TITLE,
    MAX_CONTENT_LENGTH,
    MAX_THREAD_MESSAGES,
    MAX_TITLE_LENGTH,
    Message,
    MessageCreate,
    MessageMetadata,
    Thread,
    ThreadSettings,
    ThreadUpdate,
)
from parley.utils.datetime_utils import ensure_utc, now_utc


class SqliteThreadRepository(IThreadRepository):
    """SQLite implementation of thread repository.

    Writes to the same thread are serialized with a per-thread asyncio lock so
    concurrent appends never read a stale message count.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()
        self._locks: dict[str, asyncio.Lock] = {}
        # Holders plus waiters per lock; the entry is dropped when it hits zero
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _lock_for(self, thread_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(thread_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[thread_id] = lock
        self._lock_users[thread_id] = self._lock_users.get(thread_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[thread_id] -= 1
            if not self._lock_users[thread_id]:
                del self._lock_users[thread_id]
                del self._locks[thread_id]

    def _message_orm_to_model(self, orm: ThreadMessageORM) -> Message:
        """Convert message ORM object to Pydantic model."""
        return Message(
            role=MessageRole(orm.role),
            content=orm.content,
            timestamp=ensure_utc(orm.created_at),
            metadata=MessageMetadata(
                model=orm.model,
                edited=bool(orm.edited),
                edited_at=ensure_utc(orm.edited_at),
            ),
        )

    def _orm_to_model(self, orm: ThreadORM) -> Thread:
        """Convert thread ORM object to Pydantic model."""
        return Thread(
            thread_id=orm.id,
            owner_id=orm.owner_id,
            title=orm.title or DEFAULT_THREAD_TITLE,
            messages=[self._message_orm_to_model(m) for m in orm.messages],
            settings=ThreadSettings(model=orm.model_mode, temperature=orm.temperature),
            pinned=bool(orm.pinned),
            archived=bool(orm.archived),
            tags=list(orm.tags or []),
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def _get_owned(self, session, thread_id: str, owner_id: str) -> ThreadORM:
        result = await session.execute(
            select(ThreadORM).where(
                and_(
                    ThreadORM.id == thread_id,
                    ThreadORM.owner_id == owner_id,
                )
            )
        )
        orm = result.scalar_one_or_none()
        if not orm:
            raise NotFoundError(f"Thread {thread_id} not found")
        return orm

    @staticmethod
    def _apply_auto_title(orm: ThreadORM, previous_count: int) -> None:
        """Title the thread after its first user/assistant pair."""
        if orm.title != DEFAULT_THREAD_TITLE:
            return
        if not (previous_count < 2 <= len(orm.messages)):
            return
        first_user = next(
            (m for m in orm.messages if m.role == MessageRole.USER.value and m.content.strip()),
            None,
        )
        if first_user:
            orm.title = first_user.content.strip()[:AUTO_TITLE_LENGTH]

    async def create(
        self,
        owner_id: str,
        title: Optional[str] = None,
        model_mode: Optional[str] = None,
    ) -> Thread:
        """Create an empty thread."""
        if title is not None:
            title = title.strip()
            if len(title) > MAX_TITLE_LENGTH:
                raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        now = now_utc()
        async with self._session_factory() as session:
            orm = ThreadORM(
                id=str(uuid4()),
                owner_id=owner_id,
                title=title or DEFAULT_THREAD_TITLE,
                model_mode=model_mode,
                temperature=0.7,
                pinned=False,
                archived=False,
                tags=[],
                created_at=now,
                updated_at=now,
            )
            orm.messages = []
            session.add(orm)
            await session.commit()
            return self._orm_to_model(orm)

    async def get(self, thread_id: str, owner_id: str) -> Thread:
        """Get a thread with its messages."""
        async with self._session_factory() as session:
            orm = await self._get_owned(session, thread_id, owner_id)
            return self._orm_to_model(orm)

    async def list(
        self,
        owner_id: str,
        page: int = 1,
        page_size: int = 20,
        include_archived: bool = False,
    ) -> tuple[list[Thread], int]:
        """List threads for an owner, pinned first then newest."""
        page = max(page, 1)
        page_size = max(page_size, 1)
        conditions = [ThreadORM.owner_id == owner_id]
        if not include_archived:
            conditions.append(ThreadORM.archived.is_(False))

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(ThreadORM).where(and_(*conditions))
            )
            query = (
                select(ThreadORM)
                .where(and_(*conditions))
                .order_by(ThreadORM.pinned.desc(), ThreadORM.updated_at.desc())
                .limit(page_size)
                .offset((page - 1) * page_size)
            )
            result = await session.execute(query)
            threads = [self._orm_to_model(orm) for orm in result.scalars().all()]
            return threads, int(total or 0)

    async def append(self, thread_id: str, owner_id: str, message: MessageCreate) -> Thread:
        """Append a single message."""
        return await self.append_many(thread_id, owner_id, [message])

    async def append_many(
        self,
        thread_id: str,
        owner_id: str,
        messages: list[MessageCreate],
    ) -> Thread:
        """Append messages in one transaction, all or nothing."""
        for message in messages:
            if len(message.content) > MAX_CONTENT_LENGTH:
                raise ValidationError(
                    f"Message content must be at most {MAX_CONTENT_LENGTH} characters"
                )

        async with self._lock_for(thread_id):
            async with self._session_factory() as session:
                orm = await self._get_owned(session, thread_id, owner_id)
                previous_count = len(orm.messages)
                if previous_count + len(messages) > MAX_THREAD_MESSAGES:
                    raise CapacityExceededError(
                        f"Thread has reached the maximum of {MAX_THREAD_MESSAGES} messages",
                        details={"thread_id": thread_id, "message_count": previous_count},
                    )

                now = now_utc()
                for offset, message in enumerate(messages):
                    orm.messages.append(
                        ThreadMessageORM(
                            id=str(uuid4()),
                            position=previous_count + offset,
                            role=message.role.value,
                            content=message.content,
                            model=message.metadata.model,
                            edited=False,
                            created_at=now,
                        )
                    )
                self._apply_auto_title(orm, previous_count)
                orm.updated_at = now

                await session.commit()
                return self._orm_to_model(orm)

    async def update(self, thread_id: str, owner_id: str, update: ThreadUpdate) -> Thread:
        """Update thread metadata."""
        async with self._lock_for(thread_id):
            async with self._session_factory() as session:
                orm = await self._get_owned(session, thread_id, owner_id)
                fields = update.model_dump(exclude_unset=True)
                if fields.get("title") is not None:
                    orm.title = fields["title"].strip() or DEFAULT_THREAD_TITLE
                if "model_mode" in fields:
                    orm.model_mode = fields["model_mode"]
                if fields.get("temperature") is not None:
                    orm.temperature = fields["temperature"]
                if fields.get("pinned") is not None:
                    orm.pinned = fields["pinned"]
                if fields.get("archived") is not None:
                    orm.archived = fields["archived"]
                if fields.get("tags") is not None:
                    orm.tags = list(fields["tags"])
                orm.updated_at = now_utc()

                await session.commit()
                return self._orm_to_model(orm)

    async def update_last_message(self, thread_id: str, owner_id: str, content: str) -> Thread:
        """Edit the most recent message."""
        if len(content) > MAX_CONTENT_LENGTH:
            raise ValidationError(f"Message content must be at most {MAX_CONTENT_LENGTH} characters")
        async with self._lock_for(thread_id):
            async with self._session_factory() as session:
                orm = await self._get_owned(session, thread_id, owner_id)
                if not orm.messages:
                    raise ValidationError("Thread has no messages to edit")
                now = now_utc()
                last = orm.messages[-1]
                last.content = content
                last.edited = True
                last.edited_at = now
                orm.updated_at = now

                await session.commit()
                return self._orm_to_model(orm)

    async def delete(self, thread_id: str, owner_id: str) -> None:
        """Hard delete a thread and its messages."""
        async with self._lock_for(thread_id):
            async with self._session_factory() as session:
                orm = await self._get_owned(session, thread_id, owner_id)
                await session.delete(orm)
                await session.commit()

    async def clear_messages(self, thread_id: str, owner_id: str) -> Thread:
        """Remove every message from a thread."""
        async with self._lock_for(thread_id):
            async with self._session_factory() as session:
                orm = await self._get_owned(session, thread_id, owner_id)
                orm.messages.clear()
                orm.updated_at = now_utc()

                await session.commit()
                return self._orm_to_model(orm)

    async def search(self, owner_id: str, query: str, limit: int = 20) -> list[Thread]:
        """Search non-archived threads by title, content or tag."""
        text = query.strip().lower()
        if not text:
            return []
        pattern = f"%{text}%"
        async with self._session_factory() as session:
            result = await session.execute(
                select(ThreadORM)
                .where(
                    and_(
                        ThreadORM.owner_id == owner_id,
                        ThreadORM.archived.is_(False),
                        or_(
                            func.lower(ThreadORM.title).like(pattern),
                            ThreadORM.messages.any(func.lower(ThreadMessageORM.content).like(pattern)),
                            func.lower(cast(ThreadORM.tags, String)).like(pattern),
                        ),
                    )
                )
                .order_by(ThreadORM.updated_at.desc())
                .limit(limit)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
