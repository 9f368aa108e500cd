"""Shared fixtures: file-backed SQLite database per test, unit-of-work factory, actors."""

import logging

import pytest

from palletflow.domain.models.actor import Actor, Role
from palletflow.domain.models.pallet import NewPallet
from palletflow.infrastructure.database.session import Database
from palletflow.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'palletflow.db'}")
    await db.connect()
    await db.create_schema()
    yield db
    await db.shutdown()


@pytest.fixture
def uow_factory(database):
    return lambda: SqlAlchemyUnitOfWork(database)


@pytest.fixture
def logger():
    return logging.getLogger("palletflow.tests")


@pytest.fixture
def operator():
    return Actor(id="op-1", role=Role.OPERATOR, display_name="Olga Operator")


@pytest.fixture
def admin():
    return Actor(id="admin-1", role=Role.ADMIN, display_name="Ada Admin")


def _new_pallet(pallet_id: str = "PLT001", **overrides) -> NewPallet:
    values = {
        "pallet_id": pallet_id,
        "item_code": "ITM-100",
        "item_name": "Canned tomatoes",
        "item_quantity": 48,
        "unit_no": "U-7",
        "warehouse_location": None,
        "destination": "Store 12",
    }
    values.update(overrides)
    return NewPallet(**values)


@pytest.fixture
def make_pallet():
    """Factory for NewPallet with sensible defaults; keyword overrides win."""
    return _new_pallet
