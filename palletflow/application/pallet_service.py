"""Pallet administration: reads, descriptive-field edits, deletion, warehouse stock. Status is never touched here."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from palletflow.application.concurrency import run_with_retry
from palletflow.application.pallet_repository import UnitOfWorkFactory
from palletflow.domain.exceptions import PalletNotFoundError
from palletflow.domain.models.actor import Actor
from palletflow.domain.models.listing import (
    Pagination,
    PalletFilter,
    PalletPage,
    WarehouseStockItem,
)
from palletflow.domain.models.pallet import Pallet
from palletflow.domain.validators.pallet_validator import validate_admin_changes, validate_date_order


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PalletService:
    """Administrative operations. Role checks belong to the caller."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        logger: logging.Logger,
        *,
        retry_attempts: int = 5,
        retry_backoff_seconds: float = 0.05,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._logger = logger
        self._retry_attempts = retry_attempts
        self._retry_backoff = retry_backoff_seconds
        self._clock = clock

    async def get_pallet(self, pallet_id: str) -> Pallet:
        async with self._uow_factory() as uow:
            pallet = await uow.pallets.get(pallet_id)
        if pallet is None:
            raise PalletNotFoundError(pallet_id)
        return pallet

    async def list_pallets(self, filters: PalletFilter, pagination: Pagination) -> PalletPage:
        async with self._uow_factory() as uow:
            pallets, total = await uow.pallets.list_filtered(filters, pagination)
        return PalletPage(pallets=pallets, total=total, pagination=pagination)

    async def update_pallet(self, pallet_id: str, changes: Dict[str, Any], actor: Actor) -> Pallet:
        """Apply descriptive-field changes. Raises DomainValidationError or PalletNotFoundError."""
        accepted = validate_admin_changes(changes)

        async def _attempt() -> Pallet:
            async with self._uow_factory() as uow:
                current = await uow.pallets.get_for_update(pallet_id)
                if current is None:
                    raise PalletNotFoundError(pallet_id)
                validate_date_order(
                    accepted.get("production_date", current.production_date),
                    accepted.get("expiry_date", current.expiry_date),
                )
                pallet = await uow.pallets.update_fields(pallet_id, accepted, self._clock())
                if pallet is None:
                    raise PalletNotFoundError(pallet_id)
                await uow.commit()
            return pallet

        pallet = await run_with_retry(
            _attempt,
            attempts=self._retry_attempts,
            backoff_base=self._retry_backoff,
            operation="update_pallet",
            logger=self._logger,
        )
        self._logger.info(
            "pallet_updated",
            extra={"pallet_id": pallet_id, "actor_id": actor.id, "fields": sorted(accepted)},
        )
        return pallet

    async def delete_pallet(self, pallet_id: str, actor: Actor) -> None:
        """Delete a pallet and, by cascade, its audit trail. Raises PalletNotFoundError."""

        async def _attempt() -> None:
            async with self._uow_factory() as uow:
                if not await uow.pallets.delete(pallet_id):
                    raise PalletNotFoundError(pallet_id)
                await uow.commit()

        await run_with_retry(
            _attempt,
            attempts=self._retry_attempts,
            backoff_base=self._retry_backoff,
            operation="delete_pallet",
            logger=self._logger,
        )
        self._logger.info("pallet_deleted", extra={"pallet_id": pallet_id, "actor_id": actor.id})

    async def warehouse_stock(self) -> List[WarehouseStockItem]:
        async with self._uow_factory() as uow:
            return await uow.pallets.warehouse_stock()
