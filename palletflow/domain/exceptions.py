"""Domain-specific exceptions. Pure domain layer, no infrastructure."""


class DomainError(Exception):
    """Base for all domain-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DomainValidationError(DomainError):
    """Raised when pallet attributes violate domain rules (missing fields, bad ranges)."""


class InvalidStatusError(DomainError):
    """Raised when a status value is not one of the seven lifecycle states."""


class PalletNotFoundError(DomainError):
    """Raised when no pallet exists for the given pallet_id."""

    def __init__(self, pallet_id: str) -> None:
        self.pallet_id = pallet_id
        super().__init__(f"Pallet not found: {pallet_id}")


class DuplicatePalletIdError(DomainError):
    """Raised when creating a pallet whose pallet_id already exists."""

    def __init__(self, pallet_id: str) -> None:
        self.pallet_id = pallet_id
        super().__init__(f"Pallet ID already exists: {pallet_id}")
