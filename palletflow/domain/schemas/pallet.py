"""Pydantic schemas for the pallet API and serialization. Strict validation, no DB or infrastructure."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from palletflow.domain.models.listing import PalletPage, WarehouseStockItem
from palletflow.domain.models.pallet import (
    AuditRecord,
    NewPallet,
    Pallet,
    PalletStatus,
    ScanResult,
    parse_status,
)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class PalletCreateRequest(BaseModel):
    """Request schema for registering a pallet. status defaults to At Production."""

    pallet_id: str = Field(..., min_length=1, max_length=50)
    item_code: str = Field(..., min_length=1, max_length=50)
    item_name: str = Field(..., min_length=1, max_length=100)
    item_quantity: int = Field(..., gt=0)
    unit_no: Optional[str] = Field(None, max_length=50)
    weight_kg: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    production_date: Optional[date] = None
    expiry_date: Optional[date] = None
    warehouse_location: Optional[str] = Field(None, max_length=50)
    destination: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, description="Initial status label; parsed by the engine")

    def to_new_pallet(self) -> NewPallet:
        """Build the domain NewPallet. Raises InvalidStatusError for an unknown status."""
        values = self.model_dump(exclude={"status"})
        if self.status is not None:
            values["status"] = parse_status(self.status)
        return NewPallet(**values)


class PalletUpdateRequest(BaseModel):
    """Partial administrative update. Only fields present in the body are applied."""

    item_code: Optional[str] = Field(None, min_length=1, max_length=50)
    item_name: Optional[str] = Field(None, min_length=1, max_length=100)
    item_quantity: Optional[int] = Field(None, gt=0)
    unit_no: Optional[str] = Field(None, max_length=50)
    weight_kg: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    production_date: Optional[date] = None
    expiry_date: Optional[date] = None
    warehouse_location: Optional[str] = Field(None, max_length=50)
    destination: Optional[str] = Field(None, max_length=100)

    def changes(self) -> Dict[str, object]:
        return self.model_dump(exclude_unset=True)


class ScanRequest(BaseModel):
    """
    Scan body. new_status is a plain string so that unknown values surface
    as InvalidStatusError (400) rather than a schema error.
    """

    new_status: str = Field(..., min_length=1)
    warehouse_location: Optional[str] = Field(None, max_length=50)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class PalletResponse(BaseModel):
    pallet_id: str
    item_code: str
    item_name: str
    item_quantity: int
    unit_no: Optional[str] = None
    weight_kg: Optional[Decimal] = None
    production_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: PalletStatus
    warehouse_location: Optional[str] = None
    destination: Optional[str] = None
    scan_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_pallet(cls, pallet: Pallet) -> "PalletResponse":
        return cls.model_validate(pallet)


class AuditRecordResponse(BaseModel):
    pallet_id: str
    sequence: int
    actor_id: str
    actor_name: str
    previous_status: PalletStatus
    new_status: PalletStatus
    location: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    note: Optional[str] = None
    scanned_at: datetime

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditRecordResponse":
        coords = record.coordinates
        return cls(
            pallet_id=record.pallet_id,
            sequence=record.sequence,
            actor_id=record.actor_id,
            actor_name=record.actor_name,
            previous_status=record.previous_status,
            new_status=record.new_status,
            location=record.location,
            latitude=coords.latitude if coords else None,
            longitude=coords.longitude if coords else None,
            note=record.note,
            scanned_at=record.scanned_at,
        )


class ScanResponse(BaseModel):
    message: str = "Pallet scanned successfully"
    pallet: PalletResponse
    previous_status: PalletStatus
    new_status: PalletStatus
    record: AuditRecordResponse

    @classmethod
    def from_result(cls, result: ScanResult) -> "ScanResponse":
        return cls(
            pallet=PalletResponse.from_pallet(result.pallet),
            previous_status=result.previous_status,
            new_status=result.new_status,
            record=AuditRecordResponse.from_record(result.record),
        )


class PaginationResponse(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class PalletListResponse(BaseModel):
    pallets: List[PalletResponse]
    pagination: PaginationResponse

    @classmethod
    def from_page(cls, page: PalletPage) -> "PalletListResponse":
        return cls(
            pallets=[PalletResponse.from_pallet(p) for p in page.pallets],
            pagination=PaginationResponse(
                total=page.total,
                limit=page.pagination.limit,
                offset=page.pagination.offset,
                has_more=page.has_more,
            ),
        )


class HistoryResponse(BaseModel):
    pallet_id: str
    history: List[AuditRecordResponse]


class WarehouseStockEntry(PalletResponse):
    last_handled_by: Optional[str] = None
    last_scan_time: Optional[datetime] = None

    @classmethod
    def from_item(cls, item: WarehouseStockItem) -> "WarehouseStockEntry":
        base = PalletResponse.from_pallet(item.pallet).model_dump()
        return cls(**base, last_handled_by=item.last_handled_by, last_scan_time=item.last_scan_time)


class WarehouseStockResponse(BaseModel):
    total_pallets: int
    pallets: List[WarehouseStockEntry]
    by_location: Dict[str, List[WarehouseStockEntry]]


class MessageResponse(BaseModel):
    message: str
