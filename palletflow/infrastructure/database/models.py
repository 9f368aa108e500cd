# palletflow/infrastructure/database/models.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from palletflow.domain.models.pallet import INITIAL_STATUS, PalletStatus
from palletflow.infrastructure.database.session import Base

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in PalletStatus)


class PalletModel(Base):
    """Current pallet state. version guards concurrent writers where FOR UPDATE is a no-op."""

    __tablename__ = "pallets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pallet_id = Column(String(50), unique=True, nullable=False)

    item_code = Column(String(50), nullable=False, index=True)
    item_name = Column(String(100), nullable=False)
    item_quantity = Column(Integer, nullable=False)
    unit_no = Column(String(50), nullable=True)
    weight_kg = Column(Numeric(10, 2), nullable=True)
    production_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    status = Column(String(50), nullable=False, default=INITIAL_STATUS.value, index=True)
    warehouse_location = Column(String(50), nullable=True, index=True)
    destination = Column(String(100), nullable=True)

    scan_count = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    scans = relationship(
        "PalletScanModel",
        back_populates="pallet",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_pallets_status"),
        CheckConstraint("item_quantity > 0", name="ck_pallets_item_quantity"),
    )


class PalletScanModel(Base):
    """Audit trail row. Insert-only; removed solely by cascade from pallets."""

    __tablename__ = "pallet_scans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pallet_id = Column(
        String(50),
        ForeignKey("pallets.pallet_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = Column(Integer, nullable=False)

    actor_id = Column(String(100), nullable=False, index=True)
    actor_name = Column(String(100), nullable=False)
    previous_status = Column(String(50), nullable=False)
    new_status = Column(String(50), nullable=False)

    scan_location = Column(String(50), nullable=True)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    notes = Column(Text, nullable=True)

    scanned_at = Column(DateTime(timezone=True), nullable=False, index=True)

    pallet = relationship("PalletModel", back_populates="scans")

    __table_args__ = (
        UniqueConstraint("pallet_id", "sequence", name="uq_pallet_scans_pallet_sequence"),
        CheckConstraint(f"new_status IN ({_STATUS_VALUES})", name="ck_pallet_scans_new_status"),
    )
