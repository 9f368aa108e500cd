"""Typed filters and pagination for pallet listings. Pure data; infrastructure maps fields to columns."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from palletflow.domain.exceptions import DomainValidationError
from palletflow.domain.models.pallet import Pallet, PalletStatus, parse_status


class PalletFilterField(str, Enum):
    """Fields a listing may be filtered on. Each maps to one equality comparison."""

    STATUS = "status"
    ITEM_CODE = "item_code"
    WAREHOUSE_LOCATION = "warehouse_location"


@dataclass(frozen=True)
class PalletFilter:
    """
    Conjunction of equality predicates keyed by PalletFilterField.
    Build with PalletFilter.build(); unknown or empty values are dropped.
    """

    predicates: Tuple[Tuple[PalletFilterField, Any], ...] = ()

    @classmethod
    def build(
        cls,
        *,
        status: Optional[str] = None,
        item_code: Optional[str] = None,
        warehouse_location: Optional[str] = None,
    ) -> "PalletFilter":
        """Build a filter from optional query values. status is parsed (InvalidStatusError if unknown)."""
        predicates: List[Tuple[PalletFilterField, Any]] = []
        if status is not None and status.strip():
            predicates.append((PalletFilterField.STATUS, parse_status(status)))
        if item_code is not None and item_code.strip():
            predicates.append((PalletFilterField.ITEM_CODE, item_code.strip()))
        if warehouse_location is not None and warehouse_location.strip():
            predicates.append((PalletFilterField.WAREHOUSE_LOCATION, warehouse_location.strip()))
        return cls(predicates=tuple(predicates))

    def as_dict(self) -> Dict[str, Any]:
        return {
            f.value: (v.value if isinstance(v, PalletStatus) else v)
            for f, v in self.predicates
        }


@dataclass(frozen=True)
class Pagination:
    limit: int = 100
    offset: int = 0

    @classmethod
    def bounded(cls, limit: int, offset: int, max_limit: int) -> "Pagination":
        """Validate limit in [1, max_limit] and offset >= 0."""
        if limit < 1 or limit > max_limit:
            raise DomainValidationError(f"limit must be between 1 and {max_limit}, got {limit}")
        if offset < 0:
            raise DomainValidationError(f"offset must be >= 0, got {offset}")
        return cls(limit=limit, offset=offset)


@dataclass(frozen=True)
class PalletPage:
    pallets: List[Pallet]
    total: int
    pagination: Pagination = field(default_factory=Pagination)

    @property
    def has_more(self) -> bool:
        return self.total > self.pagination.offset + len(self.pallets)


@dataclass(frozen=True)
class WarehouseStockItem:
    """A pallet currently At Warehouse with the actor and time of its latest scan."""

    pallet: Pallet
    last_handled_by: Optional[str] = None
    last_scan_time: Optional[datetime] = None


UNASSIGNED_LOCATION = "Unassigned"


def group_by_location(items: List[WarehouseStockItem]) -> Dict[str, List[WarehouseStockItem]]:
    """Group stock by warehouse_location; pallets without one go under 'Unassigned'."""
    grouped: Dict[str, List[WarehouseStockItem]] = {}
    for item in items:
        grouped.setdefault(item.pallet.warehouse_location or UNASSIGNED_LOCATION, []).append(item)
    return grouped
