"""SQLAlchemy unit of work: one session, one transaction, explicit commit. Implements UnitOfWork protocol."""

import logging
from contextlib import AsyncExitStack
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from palletflow.infrastructure.database.errors import translate_error
from palletflow.infrastructure.database.pallet_repository_db import (
    DbAuditRepository,
    DbPalletRepository,
)
from palletflow.infrastructure.database.session import Database

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """
    Pallet and audit repositories sharing one transaction.
    Exit without commit() rolls back. SQLAlchemy errors leave as
    ConcurrencyConflictError or StorageFailureError; domain errors pass through.
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[AsyncSession] = None
        self._committed = False

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._stack = AsyncExitStack()
        self._session = await self._stack.enter_async_context(self._database.session())
        self._committed = False
        self.pallets = DbPalletRepository(self._session)
        self.audit = DbAuditRepository(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if not self._committed:
                await self._session.rollback()
        except SQLAlchemyError as rollback_error:
            if exc is None:
                raise translate_error(rollback_error) from rollback_error
            logger.error(
                "rollback_failed",
                extra={"error": str(rollback_error), "original_error": str(exc)},
            )
        finally:
            await self._stack.aclose()
            self._stack = None
            self._session = None
        if isinstance(exc, SQLAlchemyError):
            raise translate_error(exc) from exc
        return False

    async def commit(self) -> None:
        await self._session.commit()
        self._committed = True
