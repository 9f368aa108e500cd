"""Pallets API router: registration, listing, scans, history, admin edits, warehouse stock."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from palletflow.api.dependencies import (
    get_pallet_service,
    get_transition_engine,
    require_permission,
)
from palletflow.application.pallet_service import PalletService
from palletflow.application.transition_engine import TransitionEngine
from palletflow.config.settings import AppSettings, get_settings
from palletflow.domain.models.actor import Actor
from palletflow.domain.models.listing import Pagination, PalletFilter, group_by_location
from palletflow.domain.schemas.pallet import (
    AuditRecordResponse,
    HistoryResponse,
    MessageResponse,
    PalletCreateRequest,
    PalletListResponse,
    PalletResponse,
    PalletUpdateRequest,
    ScanRequest,
    ScanResponse,
    WarehouseStockEntry,
    WarehouseStockResponse,
)
from palletflow.domain.validators.pallet_validator import validate_coordinates

router = APIRouter()


@router.post("/", response_model=PalletResponse, status_code=201)
async def create_pallet(
    body: PalletCreateRequest,
    actor: Annotated[Actor, Depends(require_permission("create"))],
    engine: Annotated[TransitionEngine, Depends(get_transition_engine)],
):
    """Register a pallet. Admin only."""
    pallet = await engine.create_pallet(body.to_new_pallet(), actor=actor)
    return PalletResponse.from_pallet(pallet)


@router.get("/", response_model=PalletListResponse)
async def list_pallets(
    actor: Annotated[Actor, Depends(require_permission("view"))],
    service: Annotated[PalletService, Depends(get_pallet_service)],
    settings: Annotated[AppSettings, Depends(get_settings)],
    status: Optional[str] = None,
    item_code: Optional[str] = None,
    warehouse_location: Optional[str] = None,
    limit: Annotated[Optional[int], Query()] = None,
    offset: int = 0,
):
    """List pallets, newest first, with optional equality filters and pagination."""
    filters = PalletFilter.build(
        status=status,
        item_code=item_code,
        warehouse_location=warehouse_location,
    )
    pagination = Pagination.bounded(
        limit if limit is not None else settings.default_page_size,
        offset,
        settings.max_page_size,
    )
    page = await service.list_pallets(filters, pagination)
    return PalletListResponse.from_page(page)


@router.get("/warehouse/stock", response_model=WarehouseStockResponse)
async def warehouse_stock(
    actor: Annotated[Actor, Depends(require_permission("view"))],
    service: Annotated[PalletService, Depends(get_pallet_service)],
):
    """Pallets currently At Warehouse, grouped by location."""
    items = await service.warehouse_stock()
    entries = [WarehouseStockEntry.from_item(i) for i in items]
    by_location = {
        location: [WarehouseStockEntry.from_item(i) for i in group]
        for location, group in group_by_location(items).items()
    }
    return WarehouseStockResponse(
        total_pallets=len(entries),
        pallets=entries,
        by_location=by_location,
    )


@router.get("/{pallet_id}", response_model=PalletResponse)
async def get_pallet(
    pallet_id: str,
    actor: Annotated[Actor, Depends(require_permission("view"))],
    service: Annotated[PalletService, Depends(get_pallet_service)],
):
    pallet = await service.get_pallet(pallet_id)
    return PalletResponse.from_pallet(pallet)


@router.post("/{pallet_id}/scan", response_model=ScanResponse)
async def scan_pallet(
    pallet_id: str,
    body: ScanRequest,
    actor: Annotated[Actor, Depends(require_permission("scan"))],
    engine: Annotated[TransitionEngine, Depends(get_transition_engine)],
):
    """Record a status change for a pallet on behalf of the authenticated actor."""
    coordinates = validate_coordinates(body.latitude, body.longitude)
    result = await engine.record_scan(
        pallet_id,
        actor,
        body.new_status,
        location=body.warehouse_location,
        coordinates=coordinates,
        note=body.notes,
    )
    return ScanResponse.from_result(result)


@router.get("/{pallet_id}/history", response_model=HistoryResponse)
async def pallet_history(
    pallet_id: str,
    actor: Annotated[Actor, Depends(require_permission("view"))],
    engine: Annotated[TransitionEngine, Depends(get_transition_engine)],
):
    """Audit trail for a pallet, most recent first."""
    records = await engine.get_history(pallet_id)
    return HistoryResponse(
        pallet_id=pallet_id,
        history=[AuditRecordResponse.from_record(r) for r in records],
    )


@router.put("/{pallet_id}", response_model=PalletResponse)
async def update_pallet(
    pallet_id: str,
    body: PalletUpdateRequest,
    actor: Annotated[Actor, Depends(require_permission("update"))],
    service: Annotated[PalletService, Depends(get_pallet_service)],
):
    """Edit descriptive fields. Admin only; status is not editable here."""
    pallet = await service.update_pallet(pallet_id, body.changes(), actor)
    return PalletResponse.from_pallet(pallet)


@router.delete("/{pallet_id}", response_model=MessageResponse)
async def delete_pallet(
    pallet_id: str,
    actor: Annotated[Actor, Depends(require_permission("delete"))],
    service: Annotated[PalletService, Depends(get_pallet_service)],
):
    """Delete a pallet and its audit trail. Admin only."""
    await service.delete_pallet(pallet_id, actor)
    return MessageResponse(message="Pallet deleted successfully")
