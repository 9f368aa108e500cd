# Application layer: services that orchestrate domain and infrastructure.

from palletflow.application.concurrency import run_with_retry
from palletflow.application.exceptions import (
    ApplicationError,
    ConcurrencyConflictError,
    StorageFailureError,
)
from palletflow.application.pallet_repository import (
    AuditRepository,
    PalletRepository,
    UnitOfWork,
    UnitOfWorkFactory,
)
from palletflow.application.pallet_service import PalletService
from palletflow.application.transition_engine import TransitionEngine

__all__ = [
    "ApplicationError",
    "AuditRepository",
    "ConcurrencyConflictError",
    "PalletRepository",
    "PalletService",
    "StorageFailureError",
    "TransitionEngine",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "run_with_retry",
]
