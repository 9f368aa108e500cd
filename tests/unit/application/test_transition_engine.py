"""Unit tests for TransitionEngine with a mocked unit of work: ordering, rejection, logging."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from palletflow.application.exceptions import ConcurrencyConflictError, StorageFailureError
from palletflow.application.transition_engine import TransitionEngine
from palletflow.domain.exceptions import (
    DomainValidationError,
    DuplicatePalletIdError,
    InvalidStatusError,
    PalletNotFoundError,
)
from palletflow.domain.models.actor import Actor, Role
from palletflow.domain.models.pallet import AuditRecord, NewPallet, Pallet, PalletStatus

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _pallet(status: PalletStatus = PalletStatus.AT_PRODUCTION, scan_count: int = 0) -> Pallet:
    return Pallet(
        pallet_id="PLT001",
        item_code="ITM-1",
        item_name="Flour",
        item_quantity=10,
        status=status,
        created_at=NOW,
        updated_at=NOW,
        scan_count=scan_count,
    )


class FakeUnitOfWork:
    def __init__(self):
        self.pallets = AsyncMock()
        self.audit = AsyncMock()
        self.audit.append = AsyncMock(side_effect=lambda record: record)
        self.commit = AsyncMock()
        self.exited_with = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited_with.append(exc_type)
        return False


@pytest.fixture
def uow():
    u = FakeUnitOfWork()
    u.pallets.get_for_update = AsyncMock(return_value=_pallet())
    u.pallets.apply_transition = AsyncMock(return_value=_pallet(PalletStatus.PICKED_FROM_PRODUCTION, 1))
    u.pallets.exists = AsyncMock(return_value=True)
    return u


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def engine(uow, logger):
    return TransitionEngine(lambda: uow, logger, retry_attempts=3, retry_backoff_seconds=0, clock=lambda: NOW)


@pytest.fixture
def actor():
    return Actor(id="op-1", role=Role.OPERATOR, display_name="Olga")


@pytest.mark.asyncio
async def test_record_scan_happy_path(engine, uow, logger, actor):
    result = await engine.record_scan("PLT001", actor, "Picked from Production", location="Dock 2", note="ok")

    assert result.previous_status is PalletStatus.AT_PRODUCTION
    assert result.new_status is PalletStatus.PICKED_FROM_PRODUCTION
    uow.pallets.apply_transition.assert_awaited_once_with(
        "PLT001", PalletStatus.PICKED_FROM_PRODUCTION, "Dock 2", NOW
    )
    record: AuditRecord = uow.audit.append.call_args[0][0]
    assert record.sequence == 1
    assert record.actor_id == "op-1"
    assert record.actor_name == "Olga"
    assert record.previous_status is PalletStatus.AT_PRODUCTION
    assert record.new_status is PalletStatus.PICKED_FROM_PRODUCTION
    assert record.location == "Dock 2"
    assert record.note == "ok"
    assert record.scanned_at == NOW
    uow.commit.assert_awaited_once()
    assert logger.info.call_args[0][0] == "scan_recorded"


@pytest.mark.asyncio
async def test_record_scan_same_status_is_recorded(engine, uow, actor):
    uow.pallets.apply_transition = AsyncMock(return_value=_pallet(PalletStatus.AT_PRODUCTION, 1))
    result = await engine.record_scan("PLT001", actor, "At Production")
    assert result.previous_status is result.new_status is PalletStatus.AT_PRODUCTION
    uow.audit.append.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_status_rejected_before_store(engine, uow, logger, actor):
    with pytest.raises(InvalidStatusError):
        await engine.record_scan("PLT001", actor, "Teleported")
    uow.pallets.get_for_update.assert_not_awaited()
    uow.audit.append.assert_not_awaited()
    assert logger.info.call_args[0][0] == "scan_rejected"


@pytest.mark.asyncio
async def test_actor_without_name_rejected(engine, uow):
    with pytest.raises(DomainValidationError):
        await engine.record_scan("PLT001", Actor(id="op-1", role=Role.OPERATOR, display_name=""), "Delivered")
    uow.pallets.get_for_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_pallet_raises_not_found_without_writes(engine, uow, actor):
    uow.pallets.get_for_update = AsyncMock(return_value=None)
    with pytest.raises(PalletNotFoundError):
        await engine.record_scan("NOPE", actor, "Delivered")
    uow.pallets.apply_transition.assert_not_awaited()
    uow.audit.append.assert_not_awaited()
    uow.commit.assert_not_awaited()
    assert uow.exited_with == [PalletNotFoundError]


@pytest.mark.asyncio
async def test_conflict_retried_then_succeeds(engine, uow, actor):
    uow.commit = AsyncMock(side_effect=[ConcurrencyConflictError("stale"), None])
    result = await engine.record_scan("PLT001", actor, "Picked from Production")
    assert result.new_status is PalletStatus.PICKED_FROM_PRODUCTION
    assert uow.commit.await_count == 2
    assert uow.pallets.get_for_update.await_count == 2


@pytest.mark.asyncio
async def test_conflict_exhausted_surfaces(engine, uow, logger, actor):
    uow.commit = AsyncMock(side_effect=ConcurrencyConflictError("stale"))
    with pytest.raises(ConcurrencyConflictError) as exc_info:
        await engine.record_scan("PLT001", actor, "Delivered")
    assert exc_info.value.attempts == 3
    assert logger.error.call_args[0][0] == "scan_failed"


@pytest.mark.asyncio
async def test_storage_failure_not_retried(engine, uow, actor):
    uow.audit.append = AsyncMock(side_effect=StorageFailureError("disk full"))
    with pytest.raises(StorageFailureError):
        await engine.record_scan("PLT001", actor, "Delivered")
    uow.commit.assert_not_awaited()
    assert uow.pallets.get_for_update.await_count == 1


@pytest.mark.asyncio
async def test_get_history_requires_existing_pallet(engine, uow):
    uow.pallets.exists = AsyncMock(return_value=False)
    with pytest.raises(PalletNotFoundError):
        await engine.get_history("NOPE")
    uow.audit.list_for_pallet.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_pallet_duplicate(engine, uow, logger):
    uow.pallets.exists = AsyncMock(return_value=True)
    with pytest.raises(DuplicatePalletIdError):
        await engine.create_pallet(NewPallet("PLT001", "ITM-1", "Flour", 10))
    uow.pallets.add.assert_not_awaited()
    assert logger.info.call_args[0][0] == "pallet_duplicate"


@pytest.mark.asyncio
async def test_create_pallet_validates_first(engine, uow):
    with pytest.raises(DomainValidationError):
        await engine.create_pallet(NewPallet("PLT001", "ITM-1", "Flour", 0))
    uow.pallets.exists.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_pallet_happy_path(engine, uow, logger):
    uow.pallets.exists = AsyncMock(return_value=False)
    uow.pallets.add = AsyncMock(return_value=_pallet())
    pallet = await engine.create_pallet(NewPallet("PLT001", "ITM-1", "Flour", 10))
    assert pallet.status is PalletStatus.AT_PRODUCTION
    uow.commit.assert_awaited_once()
    assert logger.info.call_args[0][0] == "pallet_created"
