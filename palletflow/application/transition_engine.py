"""
Transition engine: the only writer of pallet status.

Each scan runs in one unit of work: lock the pallet row, capture the previous
status, apply the new one and append exactly one audit record, then commit.
Validation happens before the store is touched. The engine is role-agnostic;
callers check capabilities before invoking it.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from palletflow.application.concurrency import run_with_retry
from palletflow.application.pallet_repository import UnitOfWorkFactory
from palletflow.domain.exceptions import DomainError, DuplicatePalletIdError, PalletNotFoundError
from palletflow.domain.models.actor import Actor
from palletflow.domain.models.pallet import (
    AuditRecord,
    Coordinates,
    NewPallet,
    Pallet,
    PalletStatus,
    ScanResult,
    parse_status,
)
from palletflow.domain.validators.pallet_validator import (
    validate_actor,
    validate_coordinates,
    validate_location,
    validate_new_pallet,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransitionEngine:
    """
    Applies scans and pallet registration atomically.
    Lost lock races are retried up to retry_attempts times; after that
    ConcurrencyConflictError reaches the caller with nothing persisted.
    """

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

    async def record_scan(
        self,
        pallet_id: str,
        actor: Actor,
        requested_status: Union[PalletStatus, str],
        location: Optional[str] = None,
        coordinates: Optional[Coordinates] = None,
        note: Optional[str] = None,
    ) -> ScanResult:
        """
        Move a pallet to requested_status and append one audit record.
        Raises InvalidStatusError, PalletNotFoundError, ConcurrencyConflictError
        or StorageFailureError; on any of them no write persists.
        """
        try:
            new_status = parse_status(requested_status)
            validate_actor(actor)
            validate_location(location)
            if coordinates is not None:
                coordinates = validate_coordinates(coordinates.latitude, coordinates.longitude)
        except DomainError as e:
            self._logger.info(
                "scan_rejected",
                extra={"pallet_id": pallet_id, "actor_id": actor.id, "error": e.message},
            )
            raise

        async def _attempt() -> ScanResult:
            async with self._uow_factory() as uow:
                current = await uow.pallets.get_for_update(pallet_id)
                if current is None:
                    raise PalletNotFoundError(pallet_id)
                now = self._clock()
                updated = await uow.pallets.apply_transition(pallet_id, new_status, location, now)
                record = await uow.audit.append(
                    AuditRecord(
                        pallet_id=pallet_id,
                        sequence=updated.scan_count,
                        actor_id=actor.id,
                        actor_name=actor.display_name,
                        previous_status=current.status,
                        new_status=new_status,
                        scanned_at=now,
                        location=location,
                        coordinates=coordinates,
                        note=note,
                    )
                )
                await uow.commit()
            return ScanResult(
                pallet=updated,
                previous_status=current.status,
                new_status=new_status,
                record=record,
            )

        try:
            result = await run_with_retry(
                _attempt,
                attempts=self._retry_attempts,
                backoff_base=self._retry_backoff,
                operation="record_scan",
                logger=self._logger,
            )
        except PalletNotFoundError as e:
            self._logger.info(
                "scan_rejected",
                extra={"pallet_id": pallet_id, "actor_id": actor.id, "error": e.message},
            )
            raise
        except Exception as e:
            self._logger.error(
                "scan_failed",
                extra={"pallet_id": pallet_id, "actor_id": actor.id, "error": str(e)},
            )
            raise

        self._logger.info(
            "scan_recorded",
            extra={
                "pallet_id": pallet_id,
                "actor_id": actor.id,
                "previous_status": result.previous_status.value,
                "new_status": result.new_status.value,
                "sequence": result.record.sequence,
            },
        )
        return result

    async def get_history(self, pallet_id: str) -> List[AuditRecord]:
        """Audit records for a pallet, most recent first. Raises PalletNotFoundError if it does not exist."""
        async with self._uow_factory() as uow:
            if not await uow.pallets.exists(pallet_id):
                raise PalletNotFoundError(pallet_id)
            return await uow.audit.list_for_pallet(pallet_id)

    async def create_pallet(self, attributes: NewPallet, actor: Optional[Actor] = None) -> Pallet:
        """
        Register a pallet (status defaults to At Production).
        Raises DomainValidationError, InvalidStatusError or DuplicatePalletIdError.
        """
        validate_new_pallet(attributes)
        attributes = replace(attributes, status=parse_status(attributes.status))

        async def _attempt() -> Pallet:
            async with self._uow_factory() as uow:
                if await uow.pallets.exists(attributes.pallet_id):
                    raise DuplicatePalletIdError(attributes.pallet_id)
                pallet = await uow.pallets.add(attributes, self._clock())
                await uow.commit()
            return pallet

        try:
            pallet = await run_with_retry(
                _attempt,
                attempts=self._retry_attempts,
                backoff_base=self._retry_backoff,
                operation="create_pallet",
                logger=self._logger,
            )
        except DuplicatePalletIdError:
            self._logger.info("pallet_duplicate", extra={"pallet_id": attributes.pallet_id})
            raise

        self._logger.info(
            "pallet_created",
            extra={
                "pallet_id": pallet.pallet_id,
                "status": pallet.status.value,
                "actor_id": actor.id if actor else None,
            },
        )
        return pallet
