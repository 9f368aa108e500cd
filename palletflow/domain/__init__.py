"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from palletflow.domain.exceptions import (
    DomainError,
    DomainValidationError,
    DuplicatePalletIdError,
    InvalidStatusError,
    PalletNotFoundError,
)
from palletflow.domain.models import (
    Actor,
    AuditRecord,
    Coordinates,
    NewPallet,
    Pallet,
    PalletStatus,
    Role,
    ScanResult,
    parse_status,
)

__all__ = [
    "Actor",
    "AuditRecord",
    "Coordinates",
    "DomainError",
    "DomainValidationError",
    "DuplicatePalletIdError",
    "InvalidStatusError",
    "NewPallet",
    "Pallet",
    "PalletNotFoundError",
    "PalletStatus",
    "Role",
    "ScanResult",
    "parse_status",
]
