"""
SQLite implementation of user preference repository.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from parley.infrastructure.local.database import UserPreferenceORM, get_session_factory
from parley.interfaces.user_preference_repository import IUserPreferenceRepository
from parley.models.user import UserPreference
from parley.utils.datetime_utils import ensure_utc, now_utc


class SqliteUserPreferenceRepository(IUserPreferenceRepository):
    """SQLite implementation of user preference repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: UserPreferenceORM) -> UserPreference:
        return UserPreference(
            user_id=orm.user_id,
            model_mode=orm.model_mode,
            updated_at=ensure_utc(orm.updated_at),
        )

    async def get(self, user_id: str) -> Optional[UserPreference]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserPreferenceORM).where(UserPreferenceORM.user_id == user_id)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def set_model_mode(self, user_id: str, model_mode: str) -> UserPreference:
        """Create or update the stored model mode (single upsert statement)."""
        now = now_utc()
        statement = sqlite_insert(UserPreferenceORM).values(
            user_id=user_id,
            model_mode=model_mode,
            updated_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=[UserPreferenceORM.user_id],
            set_={"model_mode": model_mode, "updated_at": now},
        )
        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()
        return UserPreference(user_id=user_id, model_mode=model_mode, updated_at=now)
