"""
Database layer — async SQLAlchemy 2.0 (aiosqlite by default).

Provides:
    • Async engine and session factory, bundled in a ``Database`` handle
    • Base model for ORM entities
    • Schema creation and connection disposal for the app lifespan

The handle is created once in the application lifespan and passed to the
components that need it; nothing here is a module-level singleton.

Usage:
    from relay.core.database import Database

    database = Database.from_settings(settings)
    await database.init_db()
    async with database.session_factory() as session:
        ...
    await database.close()
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from relay.core.config import Settings

logger = logging.getLogger(__name__)


# ── ORM Base ──
class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    if not url.database or url.database == ":memory:":
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


class Database:
    """Engine + session factory pair shared by the registry and health checks."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, database_url: str, *, echo: bool = False) -> "Database":
        _ensure_sqlite_directory(database_url)
        engine = create_async_engine(database_url, echo=echo)
        return cls(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls.from_url(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    async def init_db(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        # Import registers the tables on Base.metadata
        from relay.subscriptions import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    async def ping(self) -> None:
        """Round-trip a trivial query; raises on connection failure."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Dispose engine connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")
