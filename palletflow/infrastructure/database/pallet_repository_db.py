"""DB-backed pallet state store and audit log. Both bind to the session of one unit of work."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from palletflow.domain.exceptions import DuplicatePalletIdError, PalletNotFoundError
from palletflow.domain.models.listing import (
    Pagination,
    PalletFilter,
    PalletFilterField,
    WarehouseStockItem,
)
from palletflow.domain.models.pallet import (
    AuditRecord,
    Coordinates,
    NewPallet,
    Pallet,
    PalletStatus,
)
from palletflow.infrastructure.database.models import PalletModel, PalletScanModel

# Each filter field maps to exactly one column; values are always bound parameters.
_FILTER_COLUMNS = {
    PalletFilterField.STATUS: PalletModel.status,
    PalletFilterField.ITEM_CODE: PalletModel.item_code,
    PalletFilterField.WAREHOUSE_LOCATION: PalletModel.warehouse_location,
}


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_pallet(row: PalletModel) -> Pallet:
    return Pallet(
        pallet_id=row.pallet_id,
        item_code=row.item_code,
        item_name=row.item_name,
        item_quantity=row.item_quantity,
        status=PalletStatus(row.status),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
        scan_count=row.scan_count,
        unit_no=row.unit_no,
        weight_kg=row.weight_kg,
        production_date=row.production_date,
        expiry_date=row.expiry_date,
        warehouse_location=row.warehouse_location,
        destination=row.destination,
    )


def _to_record(row: PalletScanModel) -> AuditRecord:
    coordinates = None
    if row.latitude is not None and row.longitude is not None:
        coordinates = Coordinates(latitude=row.latitude, longitude=row.longitude)
    return AuditRecord(
        pallet_id=row.pallet_id,
        sequence=row.sequence,
        actor_id=row.actor_id,
        actor_name=row.actor_name,
        previous_status=PalletStatus(row.previous_status),
        new_status=PalletStatus(row.new_status),
        scanned_at=_aware(row.scanned_at),
        location=row.scan_location,
        coordinates=coordinates,
        note=row.notes,
    )


def build_predicates(filters: PalletFilter) -> list:
    """Translate a PalletFilter into SQLAlchemy equality clauses."""
    clauses = []
    for field, value in filters.predicates:
        column = _FILTER_COLUMNS[field]
        clauses.append(column == (value.value if isinstance(value, PalletStatus) else value))
    return clauses


class DbPalletRepository:
    """Pallet rows. Implements PalletRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._locked: Dict[str, PalletModel] = {}

    async def _load(self, pallet_id: str, *, for_update: bool) -> Optional[PalletModel]:
        stmt = select(PalletModel).where(PalletModel.pallet_id == pallet_id)
        if for_update:
            # SQLite ignores FOR UPDATE; the version column catches lost races there.
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _locked_row(self, pallet_id: str) -> Optional[PalletModel]:
        row = self._locked.get(pallet_id)
        if row is None:
            row = await self._load(pallet_id, for_update=True)
            if row is not None:
                self._locked[pallet_id] = row
        return row

    async def get(self, pallet_id: str) -> Optional[Pallet]:
        row = await self._load(pallet_id, for_update=False)
        return _to_pallet(row) if row is not None else None

    async def get_for_update(self, pallet_id: str) -> Optional[Pallet]:
        row = await self._locked_row(pallet_id)
        return _to_pallet(row) if row is not None else None

    async def exists(self, pallet_id: str) -> bool:
        stmt = select(PalletModel.id).where(PalletModel.pallet_id == pallet_id)
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def add(self, pallet: NewPallet, now: datetime) -> Pallet:
        row = PalletModel(
            pallet_id=pallet.pallet_id,
            item_code=pallet.item_code,
            item_name=pallet.item_name,
            item_quantity=pallet.item_quantity,
            unit_no=pallet.unit_no,
            weight_kg=pallet.weight_kg,
            production_date=pallet.production_date,
            expiry_date=pallet.expiry_date,
            status=pallet.status.value,
            warehouse_location=pallet.warehouse_location,
            destination=pallet.destination,
            scan_count=0,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as e:
            message = str(e.orig).lower()
            if "unique" in message or "duplicate" in message:
                raise DuplicatePalletIdError(pallet.pallet_id) from e
            raise
        return _to_pallet(row)

    async def apply_transition(
        self,
        pallet_id: str,
        new_status: PalletStatus,
        location: Optional[str],
        now: datetime,
    ) -> Pallet:
        row = await self._locked_row(pallet_id)
        if row is None:
            raise PalletNotFoundError(pallet_id)
        row.status = new_status.value
        if location:
            row.warehouse_location = location
        row.scan_count = row.scan_count + 1
        row.updated_at = now
        await self._session.flush()
        return _to_pallet(row)

    async def update_fields(self, pallet_id: str, changes: Dict[str, Any], now: datetime) -> Optional[Pallet]:
        row = await self._locked_row(pallet_id)
        if row is None:
            return None
        for name, value in changes.items():
            setattr(row, name, value)
        row.updated_at = now
        await self._session.flush()
        return _to_pallet(row)

    async def delete(self, pallet_id: str) -> bool:
        row = await self._locked_row(pallet_id)
        if row is None:
            return False
        # Explicit delete of the trail keeps the cascade independent of FK enforcement settings.
        await self._session.execute(delete(PalletScanModel).where(PalletScanModel.pallet_id == pallet_id))
        await self._session.delete(row)
        await self._session.flush()
        self._locked.pop(pallet_id, None)
        return True

    async def list_filtered(self, filters: PalletFilter, pagination: Pagination) -> Tuple[List[Pallet], int]:
        clauses = build_predicates(filters)
        stmt = (
            select(PalletModel)
            .where(*clauses)
            .order_by(PalletModel.created_at.desc(), PalletModel.id.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        count_stmt = select(func.count()).select_from(PalletModel).where(*clauses)
        rows = (await self._session.execute(stmt)).scalars().all()
        total = (await self._session.execute(count_stmt)).scalar_one()
        return [_to_pallet(r) for r in rows], total

    async def warehouse_stock(self) -> List[WarehouseStockItem]:
        latest = (
            select(
                PalletScanModel.pallet_id.label("pallet_id"),
                func.max(PalletScanModel.sequence).label("sequence"),
            )
            .group_by(PalletScanModel.pallet_id)
            .subquery()
        )
        stmt = (
            select(PalletModel, PalletScanModel.actor_name, PalletScanModel.scanned_at)
            .outerjoin(latest, latest.c.pallet_id == PalletModel.pallet_id)
            .outerjoin(
                PalletScanModel,
                and_(
                    PalletScanModel.pallet_id == latest.c.pallet_id,
                    PalletScanModel.sequence == latest.c.sequence,
                ),
            )
            .where(PalletModel.status == PalletStatus.AT_WAREHOUSE.value)
            .order_by(PalletScanModel.scanned_at.desc().nulls_last(), PalletModel.id.desc())
        )
        result = await self._session.execute(stmt)
        return [
            WarehouseStockItem(
                pallet=_to_pallet(row),
                last_handled_by=actor_name,
                last_scan_time=_aware(scanned_at),
            )
            for row, actor_name, scanned_at in result.all()
        ]


class DbAuditRepository:
    """Append-only pallet_scans rows. Implements AuditRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, record: AuditRecord) -> AuditRecord:
        coords = record.coordinates
        row = PalletScanModel(
            pallet_id=record.pallet_id,
            sequence=record.sequence,
            actor_id=record.actor_id,
            actor_name=record.actor_name,
            previous_status=record.previous_status.value,
            new_status=record.new_status.value,
            scan_location=record.location,
            latitude=coords.latitude if coords else None,
            longitude=coords.longitude if coords else None,
            notes=record.note,
            scanned_at=record.scanned_at,
        )
        self._session.add(row)
        await self._session.flush()
        return record

    async def list_for_pallet(self, pallet_id: str) -> List[AuditRecord]:
        stmt = (
            select(PalletScanModel)
            .where(PalletScanModel.pallet_id == pallet_id)
            .order_by(PalletScanModel.sequence.desc(), PalletScanModel.id.desc())
        )
        result = await self._session.execute(stmt)
        return [_to_record(r) for r in result.scalars().all()]
