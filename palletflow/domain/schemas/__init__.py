"""Domain schemas. Request/response and validation."""

from palletflow.domain.schemas.pallet import (
    AuditRecordResponse,
    HistoryResponse,
    MessageResponse,
    PaginationResponse,
    PalletCreateRequest,
    PalletListResponse,
    PalletResponse,
    PalletUpdateRequest,
    ScanRequest,
    ScanResponse,
    WarehouseStockEntry,
    WarehouseStockResponse,
)

__all__ = [
    "AuditRecordResponse",
    "HistoryResponse",
    "MessageResponse",
    "PaginationResponse",
    "PalletCreateRequest",
    "PalletListResponse",
    "PalletResponse",
    "PalletUpdateRequest",
    "ScanRequest",
    "ScanResponse",
    "WarehouseStockEntry",
    "WarehouseStockResponse",
]
