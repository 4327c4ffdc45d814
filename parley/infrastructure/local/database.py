"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from functools import lru_cache
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    JSON,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, relationship, sessionmaker

from parley.core.config import get_settings
from parley.utils.datetime_utils import now_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class ThreadORM(Base):
    """Conversation thread ORM model."""

    __tablename__ = "threads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    owner_id = Column(String(255), nullable=False, index=True)
    title = Column(String(200), nullable=False, default="New Chat")
    model_mode = Column(String(50), nullable=True)
    temperature = Column(Float, nullable=False, default=0.7)
    pinned = Column(Boolean, nullable=False, default=False, index=True)
    archived = Column(Boolean, nullable=False, default=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, index=True)

    messages = relationship(
        "ThreadMessageORM",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="ThreadMessageORM.position",
        lazy="selectin",
    )


class ThreadMessageORM(Base):
    """Thread message ORM model."""

    __tablename__ = "thread_messages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    thread_id = Column(
        String(36),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False, default="")
    model = Column(String(50), nullable=True)
    edited = Column(Boolean, nullable=False, default=False)
    edited_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    thread = relationship("ThreadORM", back_populates="messages")


class UserPreferenceORM(Base):
    """Per-user preference ORM model."""

    __tablename__ = "user_preferences"

    user_id = Column(String(255), primary_key=True)
    model_mode = Column(String(50), nullable=False, default="fast")
    updated_at = Column(DateTime(timezone=True), default=now_utc)


# ===========================================
# Database Session Management
# ===========================================


@lru_cache()
def get_engine() -> AsyncEngine:
    """Get the shared async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=False)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db():
    """Close pooled connections (application shutdown)."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_engine.cache_clear()
