"""Tests for listing filters, pagination bounds and warehouse grouping."""

from datetime import datetime, timezone

import pytest

from palletflow.domain.exceptions import DomainValidationError, InvalidStatusError
from palletflow.domain.models.listing import (
    UNASSIGNED_LOCATION,
    Pagination,
    PalletFilter,
    PalletFilterField,
    PalletPage,
    WarehouseStockItem,
    group_by_location,
)
from palletflow.domain.models.pallet import Pallet, PalletStatus


def _pallet(pallet_id: str, location=None) -> Pallet:
    now = datetime.now(timezone.utc)
    return Pallet(
        pallet_id=pallet_id,
        item_code="ITM",
        item_name="Item",
        item_quantity=1,
        status=PalletStatus.AT_WAREHOUSE,
        created_at=now,
        updated_at=now,
        warehouse_location=location,
    )


def test_filter_build_drops_empty_values():
    f = PalletFilter.build(status=None, item_code="  ", warehouse_location="")
    assert f.predicates == ()
    assert f.as_dict() == {}


def test_filter_build_parses_status_and_strips():
    f = PalletFilter.build(status="AtWarehouse", item_code=" ITM-1 ", warehouse_location="A-01")
    assert f.predicates == (
        (PalletFilterField.STATUS, PalletStatus.AT_WAREHOUSE),
        (PalletFilterField.ITEM_CODE, "ITM-1"),
        (PalletFilterField.WAREHOUSE_LOCATION, "A-01"),
    )
    assert f.as_dict() == {
        "status": "At Warehouse",
        "item_code": "ITM-1",
        "warehouse_location": "A-01",
    }


def test_filter_build_rejects_unknown_status():
    with pytest.raises(InvalidStatusError):
        PalletFilter.build(status="Misplaced")


@pytest.mark.parametrize("limit,offset", [(0, 0), (501, 0), (10, -1)])
def test_pagination_bounds(limit, offset):
    with pytest.raises(DomainValidationError):
        Pagination.bounded(limit, offset, 500)


def test_pagination_bounded_ok():
    assert Pagination.bounded(500, 20, 500) == Pagination(limit=500, offset=20)


def test_page_has_more():
    page = PalletPage(pallets=[_pallet("A"), _pallet("B")], total=5, pagination=Pagination(limit=2, offset=2))
    assert page.has_more is True
    last = PalletPage(pallets=[_pallet("E")], total=5, pagination=Pagination(limit=2, offset=4))
    assert last.has_more is False


def test_group_by_location_uses_unassigned_bucket():
    items = [
        WarehouseStockItem(pallet=_pallet("A", "Dock 1")),
        WarehouseStockItem(pallet=_pallet("B")),
        WarehouseStockItem(pallet=_pallet("C", "Dock 1")),
    ]
    grouped = group_by_location(items)
    assert [i.pallet.pallet_id for i in grouped["Dock 1"]] == ["A", "C"]
    assert [i.pallet.pallet_id for i in grouped[UNASSIGNED_LOCATION]] == ["B"]
