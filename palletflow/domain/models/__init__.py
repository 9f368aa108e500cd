"""Domain models. Pure business entities."""

from palletflow.domain.models.actor import Actor, Role
from palletflow.domain.models.listing import (
    UNASSIGNED_LOCATION,
    Pagination,
    PalletFilter,
    PalletFilterField,
    PalletPage,
    WarehouseStockItem,
    group_by_location,
)
from palletflow.domain.models.pallet import (
    INITIAL_STATUS,
    AuditRecord,
    Coordinates,
    NewPallet,
    Pallet,
    PalletStatus,
    ScanResult,
    parse_status,
)

__all__ = [
    "INITIAL_STATUS",
    "UNASSIGNED_LOCATION",
    "Actor",
    "AuditRecord",
    "Coordinates",
    "NewPallet",
    "Pagination",
    "Pallet",
    "PalletFilter",
    "PalletFilterField",
    "PalletPage",
    "PalletStatus",
    "Role",
    "ScanResult",
    "WarehouseStockItem",
    "group_by_location",
    "parse_status",
]
