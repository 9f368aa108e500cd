# palletflow/infrastructure/database/session.py

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from palletflow.application.exceptions import StorageFailureError
from palletflow.config.settings import AppSettings

Base = declarative_base()

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Process-wide connection pool with an explicit lifecycle.

    connect() on startup, session() per operation (always released),
    shutdown() refuses new sessions, waits for in-flight ones, then disposes the pool.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
    ) -> None:
        self._url = make_url(url)
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._closing = False

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.database_echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=settings.pool_pre_ping,
        )

    @property
    def is_sqlite(self) -> bool:
        return self._url.get_backend_name() == "sqlite"

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageFailureError("Database is not connected")
        return self._engine

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def connect(self) -> None:
        """Create the engine and verify connectivity. Idempotent."""
        if self._engine is not None:
            return
        kwargs = {"echo": self._echo, "pool_pre_ping": self._pool_pre_ping}
        if not self.is_sqlite:
            kwargs.update(pool_size=self._pool_size, max_overflow=self._max_overflow)
        engine = create_async_engine(self._url, **kwargs)
        if self.is_sqlite:
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            await engine.dispose()
            logger.error("database_connect_failed", extra={"error": str(e)})
            raise StorageFailureError(f"Database unavailable: {e.__class__.__name__}") from e

        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
            class_=AsyncSession,
        )
        self._closing = False
        logger.info("database_connected", extra={"backend": self._url.get_backend_name()})

    async def create_schema(self) -> None:
        # Register ORM tables on Base.metadata before create_all.
        from palletflow.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        from palletflow.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped session. Released on exit whatever the outcome."""
        if self._closing:
            raise StorageFailureError("Database is shutting down")
        if self._sessionmaker is None:
            raise StorageFailureError("Database is not connected")
        self._in_flight += 1
        self._idle.clear()
        try:
            async with self._sessionmaker() as session:
                yield session
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Drain in-flight sessions, then dispose the pool. Safe to call twice."""
        self._closing = True
        if self._engine is None:
            return
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("database_shutdown_timeout", extra={"in_flight": self._in_flight})
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("database_disposed")
