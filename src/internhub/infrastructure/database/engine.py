"""Async database engine and session management.

Provides:
    - Database: owns the SQLAlchemy async engine and its session factory.
      One instance is constructed per application, opened in the lifespan
      startup hook and disposed at shutdown; request handlers receive it
      through dependency injection instead of a module-level handle.

Usage in FastAPI:
    @app.get("/contracts")
    async def list_contracts(session: AsyncSession = Depends(get_db_session)):
        ...
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from internhub.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from internhub.config import Settings

logger = get_logger(__name__)


class Database:
    """Engine + session factory with an explicit open/close lifecycle."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._session_factory

    def connect(self) -> None:
        """Create the engine and session factory."""
        if self._engine is not None:
            return
        settings = self._settings
        url = make_url(settings.database_url)

        engine_kwargs: dict = {"echo": settings.db_echo_sql}
        if url.get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_pre_ping=True,
            )

        self._engine = create_async_engine(url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "database.engine_created",
            backend=url.get_backend_name(),
            pool_size=engine_kwargs.get("pool_size"),
        )

    async def create_all(self) -> None:
        """Create tables if they don't exist.

        Called during startup in development. In production, use Alembic
        migrations instead.
        """
        from internhub.infrastructure.database.orm_models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database.tables_created")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session scoped to one request.

        Anything left pending is committed on success or rolled back on error.
        Services that own a unit of work commit explicitly before returning.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Dispose of the engine. Called during FastAPI's lifespan shutdown."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("database.engine_disposed")
            self._engine = None
            self._session_factory = None
