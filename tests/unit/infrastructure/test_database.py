"""Tests for Database lifecycle and the SQLAlchemy unit of work."""

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from palletflow.application.exceptions import StorageFailureError
from palletflow.domain.exceptions import DuplicatePalletIdError, PalletNotFoundError
from palletflow.domain.models.pallet import PalletStatus
from palletflow.infrastructure.database.models import PalletModel
from palletflow.infrastructure.database.session import Database
from palletflow.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork


NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_session_before_connect_raises():
    db = Database("sqlite+aiosqlite:///:memory:")
    with pytest.raises(StorageFailureError):
        async with db.session():
            pass


@pytest.mark.asyncio
async def test_connect_is_idempotent(database):
    engine = database.engine
    await database.connect()
    assert database.engine is engine
    assert database.is_sqlite is True


@pytest.mark.asyncio
async def test_connect_failure_surfaces_storage_failure(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nested' / 'x.db'}")
    with pytest.raises(StorageFailureError):
        await db.connect()


@pytest.mark.asyncio
async def test_in_flight_counts_sessions(database):
    assert database.in_flight == 0
    async with database.session():
        assert database.in_flight == 1
        async with database.session():
            assert database.in_flight == 2
    assert database.in_flight == 0


@pytest.mark.asyncio
async def test_shutdown_drains_in_flight_then_refuses(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'drain.db'}")
    await db.connect()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def _hold_session():
        async with db.session():
            entered.set()
            await release.wait()

    holder = asyncio.create_task(_hold_session())
    await entered.wait()
    shutdown = asyncio.create_task(db.shutdown())
    await asyncio.sleep(0.01)
    assert not shutdown.done()

    with pytest.raises(StorageFailureError):
        async with db.session():
            pass

    release.set()
    await holder
    await shutdown
    assert db.in_flight == 0
    with pytest.raises(StorageFailureError):
        _ = db.engine
    # Second shutdown is a no-op.
    await db.shutdown()


@pytest.mark.asyncio
async def test_uow_without_commit_rolls_back(database, make_pallet):
    async with SqlAlchemyUnitOfWork(database) as uow:
        await uow.pallets.add(make_pallet("PLT001"), NOW)

    async with SqlAlchemyUnitOfWork(database) as uow:
        assert await uow.pallets.exists("PLT001") is False


@pytest.mark.asyncio
async def test_uow_commit_persists_and_sets_version(database, make_pallet):
    async with SqlAlchemyUnitOfWork(database) as uow:
        await uow.pallets.add(make_pallet("PLT001"), NOW)
        await uow.commit()

    async with database.session() as session:
        row = (await session.execute(select(PalletModel))).scalar_one()
        assert row.pallet_id == "PLT001"
        assert row.status == PalletStatus.AT_PRODUCTION.value
        assert row.version == 1


@pytest.mark.asyncio
async def test_repository_add_maps_unique_violation(database, make_pallet):
    async with SqlAlchemyUnitOfWork(database) as uow:
        await uow.pallets.add(make_pallet("PLT001"), NOW)
        await uow.commit()

    with pytest.raises(DuplicatePalletIdError):
        async with SqlAlchemyUnitOfWork(database) as uow:
            await uow.pallets.add(make_pallet("PLT001"), NOW)
            await uow.commit()


@pytest.mark.asyncio
async def test_session_released_after_uow_error(database):
    with pytest.raises(RuntimeError):
        async with SqlAlchemyUnitOfWork(database):
            raise RuntimeError("boom")
    assert database.in_flight == 0


@pytest.mark.asyncio
async def test_apply_transition_on_missing_pallet_raises_not_found(database):
    with pytest.raises(PalletNotFoundError):
        async with SqlAlchemyUnitOfWork(database) as uow:
            await uow.pallets.apply_transition("PLT404", PalletStatus.DELIVERED, None, NOW)
