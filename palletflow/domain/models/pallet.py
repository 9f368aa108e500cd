"""Domain model for pallets and their audit trail. Pure business semantics, no ORM or infrastructure."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from palletflow.domain.exceptions import InvalidStatusError


class PalletStatus(str, Enum):
    """
    Lifecycle status for a pallet. Values are the persisted labels.
    Any status may follow any other: correction scans can move a pallet backwards.
    """

    AT_PRODUCTION = "At Production"
    PICKED_FROM_PRODUCTION = "Picked from Production"
    IN_TRANSIT_TO_WAREHOUSE = "In Transit to Warehouse"
    AT_WAREHOUSE = "At Warehouse"
    PICKED_FOR_DELIVERY = "Picked for Delivery"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"

    @property
    def camel_name(self) -> str:
        """AtProduction-style identifier used by scanner clients."""
        return "".join(part.capitalize() for part in self.name.split("_"))


INITIAL_STATUS = PalletStatus.AT_PRODUCTION

_STATUS_ALIASES: dict[str, PalletStatus] = {}
for _status in PalletStatus:
    _STATUS_ALIASES[_status.value] = _status
    _STATUS_ALIASES[_status.name] = _status
    _STATUS_ALIASES[_status.camel_name] = _status


def parse_status(value: Union[PalletStatus, str, None]) -> PalletStatus:
    """
    Resolve a status from its label ("At Warehouse"), member name ("AT_WAREHOUSE")
    or CamelCase name ("AtWarehouse"). Raises InvalidStatusError otherwise.
    """
    if isinstance(value, PalletStatus):
        return value
    if isinstance(value, str):
        status = _STATUS_ALIASES.get(value.strip())
        if status is not None:
            return status
    allowed = ", ".join(s.value for s in PalletStatus)
    raise InvalidStatusError(f"Invalid status '{value}'. Must be one of: {allowed}")


@dataclass(frozen=True)
class Coordinates:
    """GPS position captured by the scanning device."""

    latitude: Decimal
    longitude: Decimal


@dataclass(frozen=True)
class NewPallet:
    """Attributes supplied by an administrator when registering a pallet."""

    pallet_id: str
    item_code: str
    item_name: str
    item_quantity: int
    unit_no: Optional[str] = None
    weight_kg: Optional[Decimal] = None
    production_date: Optional[date] = None
    expiry_date: Optional[date] = None
    warehouse_location: Optional[str] = None
    destination: Optional[str] = None
    status: PalletStatus = INITIAL_STATUS


@dataclass(frozen=True)
class Pallet:
    """Snapshot of a pallet row. Status changes go through the transition engine only."""

    pallet_id: str
    item_code: str
    item_name: str
    item_quantity: int
    status: PalletStatus
    created_at: datetime
    updated_at: datetime
    scan_count: int = 0
    unit_no: Optional[str] = None
    weight_kg: Optional[Decimal] = None
    production_date: Optional[date] = None
    expiry_date: Optional[date] = None
    warehouse_location: Optional[str] = None
    destination: Optional[str] = None


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable record of one accepted transition.
    sequence is assigned under the pallet row lock and is the causal order;
    scanned_at is informational.
    """

    pallet_id: str
    sequence: int
    actor_id: str
    actor_name: str
    previous_status: PalletStatus
    new_status: PalletStatus
    scanned_at: datetime
    location: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a successful scan: the updated pallet and the transition it went through."""

    pallet: Pallet
    previous_status: PalletStatus
    new_status: PalletStatus
    record: AuditRecord
