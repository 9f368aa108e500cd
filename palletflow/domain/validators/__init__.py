"""Domain validators. Pure validation functions."""

from palletflow.domain.validators.pallet_validator import (
    UPDATABLE_FIELDS,
    validate_actor,
    validate_admin_changes,
    validate_coordinates,
    validate_date_order,
    validate_location,
    validate_new_pallet,
    validate_pallet_id,
)

__all__ = [
    "UPDATABLE_FIELDS",
    "validate_actor",
    "validate_admin_changes",
    "validate_coordinates",
    "validate_date_order",
    "validate_location",
    "validate_new_pallet",
    "validate_pallet_id",
]
