"""Fixtures for API tests: app bound to a temporary SQLite database, AsyncClient, actor headers."""

import pytest
from httpx import ASGITransport, AsyncClient

from palletflow.main import app


@pytest.fixture
def app_with_overrides(database):
    """App wired to the per-test database instead of the lifespan-managed one."""
    from palletflow.api import dependencies

    app.dependency_overrides[dependencies.get_database] = lambda: database
    app.state.database = database
    yield app
    app.dependency_overrides.clear()
    del app.state.database


@pytest.fixture
async def async_client(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"X-Actor-ID": "admin-1", "X-Actor-Role": "admin", "X-Actor-Name": "Ada Admin"}


@pytest.fixture
def operator_headers():
    return {"X-Actor-ID": "op-1", "X-Actor-Role": "operator", "X-Actor-Name": "Olga Operator"}


@pytest.fixture
def pallet_body():
    return {
        "pallet_id": "PLT001",
        "item_code": "ITM-100",
        "item_name": "Canned tomatoes",
        "item_quantity": 48,
        "unit_no": "U-7",
        "weight_kg": "612.50",
        "production_date": "2024-05-01",
        "expiry_date": "2026-05-01",
        "destination": "Store 12",
    }
