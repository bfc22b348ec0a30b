"""Async SQLAlchemy setup for the client-local SQLite store."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from noteflow.core.settings import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class LocalDatabase:
    """Engine and session factory for one local database file."""

    def __init__(self, uri: str | None = None) -> None:
        self.uri = uri or get_settings().local_store_uri
        self.engine: AsyncEngine = create_async_engine(self.uri, echo=False, future=True)
        self.SessionLocal = async_sessionmaker(self.engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope around a series of operations."""

        async with self.SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init(self) -> None:
        """Create the database file's directory and any missing tables."""

        from . import models  # noqa: F401

        url = make_url(self.uri)
        if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("local store ready", extra={"uri": self.uri})

    async def dispose(self) -> None:
        await self.engine.dispose()


__all__ = ["Base", "LocalDatabase"]
