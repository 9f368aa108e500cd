"""State store protocols. Application layer depends on these; infrastructure implements them."""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from palletflow.domain.models.listing import Pagination, PalletFilter, WarehouseStockItem
from palletflow.domain.models.pallet import AuditRecord, NewPallet, Pallet, PalletStatus


class PalletRepository(Protocol):
    """Current pallet state. Bound to the session of one unit of work."""

    async def get(self, pallet_id: str) -> Optional[Pallet]:
        """Return pallet by business id, or None."""
        ...

    async def get_for_update(self, pallet_id: str) -> Optional[Pallet]:
        """Return pallet and hold its row lock until the unit of work ends, or None."""
        ...

    async def exists(self, pallet_id: str) -> bool:
        ...

    async def add(self, pallet: NewPallet, now: datetime) -> Pallet:
        """Insert a pallet. Raises DuplicatePalletIdError on unique violation."""
        ...

    async def apply_transition(
        self,
        pallet_id: str,
        new_status: PalletStatus,
        location: Optional[str],
        now: datetime,
    ) -> Pallet:
        """Set status (and location when given), bump scan_count and updated_at. Row must be locked."""
        ...

    async def update_fields(self, pallet_id: str, changes: Dict[str, Any], now: datetime) -> Optional[Pallet]:
        """Apply administrative field changes under the row lock. None if not found."""
        ...

    async def delete(self, pallet_id: str) -> bool:
        """Delete pallet and its audit records. False if not found."""
        ...

    async def list_filtered(self, filters: PalletFilter, pagination: Pagination) -> Tuple[List[Pallet], int]:
        """Return one page of pallets (newest first) and the total count matching filters."""
        ...

    async def warehouse_stock(self) -> List[WarehouseStockItem]:
        """Pallets At Warehouse with their latest scan, most recently scanned first."""
        ...


class AuditRepository(Protocol):
    """Append-only audit log. Bound to the same session as PalletRepository."""

    async def append(self, record: AuditRecord) -> AuditRecord:
        ...

    async def list_for_pallet(self, pallet_id: str) -> List[AuditRecord]:
        """Records for a pallet, most recent (highest sequence) first."""
        ...


class UnitOfWork(Protocol):
    """
    One session and one transaction. Nothing persists unless commit() is called;
    leaving the context without commit rolls back.
    """

    pallets: PalletRepository
    audit: AuditRepository

    async def __aenter__(self) -> "UnitOfWork":
        ...

    async def __aexit__(self, exc_type, exc, tb) -> Optional[bool]:
        ...

    async def commit(self) -> None:
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
