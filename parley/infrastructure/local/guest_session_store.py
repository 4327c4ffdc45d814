"""In-memory guest session store."""

import asyncio
import hashlib
import time
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import uuid4

from parley.core.exceptions import GuestLimitExceeded


@dataclass
class _GuestSession:
    count: int
    expires_at: float


class InMemoryGuestSessionStore:
    """Tracks how many messages each guest session has sent.

    Counters live in process memory only. In production with multiple
    instances, consider using Redis instead.

    Sessions expire ``ttl_seconds`` after their last send, and at most
    ``max_sessions`` are kept; the least recently used one is evicted first.
    """

    def __init__(
        self,
        limit: int = 5,
        ttl_seconds: float = 24 * 60 * 60,
        max_sessions: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._limit = limit
        self._ttl_seconds = ttl_seconds
        self._max_sessions = max(max_sessions, 1)
        self._clock = clock
        self._sessions: dict[str, _GuestSession] = {}
        self._next_sweep = clock() + ttl_seconds
        self._lock = asyncio.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._sessions)

    def new_session_id(self) -> str:
        return f"guest-{uuid4()}"

    @staticmethod
    def session_id_for_client(client_key: str) -> str:
        """Stable session id for a client that did not send one."""
        digest = hashlib.sha256(client_key.encode("utf-8")).hexdigest()
        return f"guest-{digest[:32]}"

    async def resolve_session_id(self, requested: Optional[str], client_key: Optional[str]) -> str:
        """
        Pick the counter a guest send is charged to.

        A live session id the store already knows is kept. Otherwise the
        client key (e.g. the remote host) decides, so dropping or inventing an
        id does not reset the allowance. Without a client key the requested id
        is used as is, or a fresh one is issued.
        """
        async with self._lock:
            if requested and self._live(requested, self._clock()) is not None:
                return requested
        if client_key:
            return self.session_id_for_client(client_key)
        return requested or self.new_session_id()

    def _live(self, session_id: str, now: float) -> Optional[_GuestSession]:
        session = self._sessions.get(session_id)
        if session is not None and session.expires_at <= now:
            del self._sessions[session_id]
            return None
        return session

    def _sweep(self, now: float) -> None:
        if now >= self._next_sweep:
            expired = [key for key, session in self._sessions.items() if session.expires_at <= now]
            for key in expired:
                del self._sessions[key]
            self._next_sweep = now + self._ttl_seconds
        while len(self._sessions) >= self._max_sessions:
            # dict order is least recently touched first
            del self._sessions[next(iter(self._sessions))]

    async def sent_count(self, session_id: str) -> int:
        async with self._lock:
            session = self._live(session_id, self._clock())
            return session.count if session else 0

    async def remaining(self, session_id: Optional[str]) -> int:
        if not session_id:
            return self._limit
        return max(self._limit - await self.sent_count(session_id), 0)

    async def reserve(self, session_id: str) -> int:
        """Count one send against the session.

        Returns:
            Messages still allowed after this one

        Raises:
            GuestLimitExceeded: If the session already used its allowance
        """
        async with self._lock:
            now = self._clock()
            session = self._live(session_id, now)
            if session is None:
                self._sweep(now)
                session = _GuestSession(count=0, expires_at=now)
            else:
                del self._sessions[session_id]
            if session.count >= self._limit:
                self._sessions[session_id] = session
                raise GuestLimitExceeded(self._limit)
            session.count += 1
            session.expires_at = now + self._ttl_seconds
            self._sessions[session_id] = session
            return self._limit - session.count

    async def release(self, session_id: str) -> None:
        """Undo a reservation for a send that never completed."""
        async with self._lock:
            session = self._live(session_id, self._clock())
            if session is None:
                return
            session.count -= 1
            if session.count <= 0:
                del self._sessions[session_id]
