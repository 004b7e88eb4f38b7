"""Async database engine and session factory.

Uses SQLAlchemy 2.0's asyncio extension. SQLite (aiosqlite) is the default
for single-host deployments; PostgreSQL (asyncpg) works by pointing
DATABASE_URL at it.

Each application owns one ``Database`` on ``app.state.database``, built from
the settings it was created with.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from scribe.config import Settings


class Database:
    """Lazily created engine and session factory for one database URL."""

    def __init__(self, url: str, pool_size: int = 5, max_overflow: int = 10) -> None:
        self.url = url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, config: Settings) -> Database:
        return cls(
            config.database_url,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
        )

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the async engine.

        Pool sizing only applies to server databases; SQLite picks its own pool.
        """
        if self._engine is None:
            url = make_url(self.url)
            options: dict[str, Any] = {"echo": False}
            if url.get_backend_name() != "sqlite":
                options.update(
                    pool_size=self.pool_size,
                    max_overflow=self.max_overflow,
                    pool_recycle=1800,
                    pool_pre_ping=True,
                )
            self._engine = create_async_engine(url, **options)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session_context(self) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope around a series of operations.

        Usage:
            async with database.session_context() as session:
                result = await session.execute(...)
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create tables that do not exist yet."""
        from scribe.persistence.tables import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            async with self.session_context() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception:
            return False


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session from the app's database for dependency injection.

    Usage:
        @router.get("/")
        async def handler(session: AsyncSession = Depends(get_session)):
            ...
    """
    session = get_database(request).session_factory()
    try:
        yield session
    finally:
        await session.close()
