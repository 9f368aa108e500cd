"""Validators for pallet domain rules. Pure functions, no infrastructure or DB access."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from palletflow.domain.exceptions import DomainValidationError
from palletflow.domain.models.actor import Actor
from palletflow.domain.models.pallet import Coordinates, NewPallet

# Column widths of the persisted layout (domain constants; avoid magic numbers)
PALLET_ID_MAX_LENGTH = 50
ITEM_CODE_MAX_LENGTH = 50
ITEM_NAME_MAX_LENGTH = 100
LOCATION_MAX_LENGTH = 50
DESTINATION_MAX_LENGTH = 100
ACTOR_NAME_MAX_LENGTH = 100

LATITUDE_BOUND = Decimal(90)
LONGITUDE_BOUND = Decimal(180)

# Fields an administrator may change after creation. status and pallet_id are not among them.
UPDATABLE_FIELDS = frozenset(
    {
        "item_code",
        "item_name",
        "item_quantity",
        "unit_no",
        "weight_kg",
        "production_date",
        "expiry_date",
        "warehouse_location",
        "destination",
    }
)
_REQUIRED_FIELDS = frozenset({"item_code", "item_name", "item_quantity"})


def _require_text(name: str, value: Optional[str], max_length: int) -> None:
    if value is None or not str(value).strip():
        raise DomainValidationError(f"{name} must not be empty")
    if len(value) > max_length:
        raise DomainValidationError(f"{name} must be at most {max_length} characters")


def _optional_text(name: str, value: Optional[str], max_length: int) -> None:
    if value is not None and len(value) > max_length:
        raise DomainValidationError(f"{name} must be at most {max_length} characters")


def validate_pallet_id(pallet_id: str) -> None:
    """pallet_id must be non-empty and fit the business-key column."""
    _require_text("pallet_id", pallet_id, PALLET_ID_MAX_LENGTH)


def validate_location(location: Optional[str]) -> None:
    _optional_text("warehouse_location", location, LOCATION_MAX_LENGTH)


def validate_quantity(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise DomainValidationError(f"item_quantity must be a positive integer, got {quantity!r}")


def validate_weight(weight_kg: Optional[Decimal]) -> None:
    if weight_kg is not None and weight_kg < 0:
        raise DomainValidationError(f"weight_kg must be >= 0, got {weight_kg}")


def validate_coordinates(
    latitude: Optional[Decimal],
    longitude: Optional[Decimal],
) -> Optional[Coordinates]:
    """Both or neither; latitude in [-90, 90], longitude in [-180, 180]."""
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise DomainValidationError("latitude and longitude must be supplied together")
    latitude = Decimal(str(latitude))
    longitude = Decimal(str(longitude))
    if not (-LATITUDE_BOUND <= latitude <= LATITUDE_BOUND):
        raise DomainValidationError(f"latitude must be between -90 and 90, got {latitude}")
    if not (-LONGITUDE_BOUND <= longitude <= LONGITUDE_BOUND):
        raise DomainValidationError(f"longitude must be between -180 and 180, got {longitude}")
    return Coordinates(latitude=latitude, longitude=longitude)


def validate_new_pallet(pallet: NewPallet) -> None:
    """
    Validate pallet registration: identifiers, required item fields, quantity,
    weight, date order. Raises DomainValidationError on violation.
    """
    validate_pallet_id(pallet.pallet_id)
    _require_text("item_code", pallet.item_code, ITEM_CODE_MAX_LENGTH)
    _require_text("item_name", pallet.item_name, ITEM_NAME_MAX_LENGTH)
    validate_quantity(pallet.item_quantity)
    validate_weight(pallet.weight_kg)
    validate_location(pallet.warehouse_location)
    _optional_text("destination", pallet.destination, DESTINATION_MAX_LENGTH)
    validate_date_order(pallet.production_date, pallet.expiry_date)


def validate_date_order(production_date: Optional[date], expiry_date: Optional[date]) -> None:
    if production_date and expiry_date and expiry_date < production_date:
        raise DomainValidationError("expiry_date must not be before production_date")


def validate_admin_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate an administrative partial update. Returns the accepted changes.
    Rejects empty change sets, unknown fields and cleared required fields.
    """
    if not changes:
        raise DomainValidationError("No fields to update")
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise DomainValidationError(f"Fields not updatable: {', '.join(sorted(unknown))}")
    for name in _REQUIRED_FIELDS & set(changes):
        if changes[name] is None:
            raise DomainValidationError(f"{name} must not be cleared")
    if "item_code" in changes:
        _require_text("item_code", changes["item_code"], ITEM_CODE_MAX_LENGTH)
    if "item_name" in changes:
        _require_text("item_name", changes["item_name"], ITEM_NAME_MAX_LENGTH)
    if "item_quantity" in changes:
        validate_quantity(changes["item_quantity"])
    if "weight_kg" in changes:
        validate_weight(changes["weight_kg"])
    if "warehouse_location" in changes:
        validate_location(changes["warehouse_location"])
    if "destination" in changes:
        _optional_text("destination", changes["destination"], DESTINATION_MAX_LENGTH)
    validate_date_order(changes.get("production_date"), changes.get("expiry_date"))
    return dict(changes)


def validate_actor(actor: Actor) -> None:
    """Audit columns actor_id and actor_name are NOT NULL."""
    _require_text("actor_id", actor.id, ACTOR_NAME_MAX_LENGTH)
    _require_text("actor_name", actor.display_name, ACTOR_NAME_MAX_LENGTH)
