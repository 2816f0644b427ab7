"""
Field validation for asset create and update.

Normalizes caller input into an ``AssetFields`` record: strings are
trimmed, optional blanks become None, numbers become ``int``/``Decimal``.
Every rule violation raises ``AssetValidationError(field, reason)``.
"""

from collections.abc import Mapping
from dataclasses import asdict, fields as dataclass_fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from inventory_kernel.exceptions import (
    AssetValidationError,
    CategoryNotFoundError,
    ImmutabilityViolationError,
    LocationNotFoundError,
)
from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.models import AssetFields, AssetStatus
from inventory_modules.assets.repository import AssetRepository

NAME_MAX_LENGTH = 255
UNIT_MAX_LENGTH = 50

UPDATABLE_FIELDS: frozenset[str] = frozenset(f.name for f in dataclass_fields(AssetFields))

# Computed by the service; callers may not set them directly
DERIVED_FIELDS: frozenset[str] = frozenset({
    "id",
    "economic_life_months",
    "accumulated_depreciation",
    "residual_value",
    "bulk_id",
    "bulk_sequence",
    "is_bulk_parent",
    "bulk_total_count",
    "created_at",
    "updated_at",
    "created_by_id",
    "updated_by_id",
})


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_str(name: str, value: Any, max_length: int) -> str:
    text = _clean_str(value)
    if text is None:
        raise AssetValidationError(name, "is required")
    if len(text) > max_length:
        raise AssetValidationError(name, f"must be at most {max_length} characters")
    return text


def _non_negative_int(name: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise AssetValidationError(name, "must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise AssetValidationError(name, "must be an integer") from None
    if isinstance(value, float) and number != value:
        raise AssetValidationError(name, "must be an integer")
    if number < 0:
        raise AssetValidationError(name, "must be >= 0")
    return number


def _price(value: Any) -> Decimal:
    if value is None or value == "":
        raise AssetValidationError("acquisition_price", "is required")
    if isinstance(value, bool):
        raise AssetValidationError("acquisition_price", "must be a number")
    try:
        price = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except InvalidOperation:
        raise AssetValidationError("acquisition_price", "must be a number") from None
    if not price.is_finite():
        raise AssetValidationError("acquisition_price", "must be a number")
    if price < 0:
        raise AssetValidationError("acquisition_price", "must be >= 0")
    return price


def _acquisition_date(value: Any, today: date) -> date:
    if value is None or value == "":
        raise AssetValidationError("acquisition_date", "is required")
    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        try:
            value = date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise AssetValidationError("acquisition_date", "must be a YYYY-MM-DD date") from None
    elif not isinstance(value, date):
        raise AssetValidationError("acquisition_date", "must be a date")
    if value > today:
        raise AssetValidationError("acquisition_date", "cannot be in the future")
    return value


def _uuid(name: str, value: Any, required: bool) -> UUID | None:
    if value is None or value == "":
        if required:
            raise AssetValidationError(name, "is required")
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise AssetValidationError(name, "must be a UUID") from None


def _status(value: Any) -> AssetStatus:
    if value is None or value == "":
        return AssetStatus.GOOD
    try:
        return AssetStatus(value.strip() if isinstance(value, str) else value)
    except ValueError:
        allowed = ", ".join(s.value for s in AssetStatus)
        raise AssetValidationError("status", f"must be one of: {allowed}") from None


def normalize_fields(data: AssetFields | Mapping[str, Any], today: date) -> AssetFields:
    """
    Validate and normalize asset input.

    ``data`` may be an ``AssetFields`` or a mapping of the same names.
    ``today`` bounds the acquisition date.

    Raises:
        AssetValidationError: On the first violated rule.
    """
    raw = asdict(data) if isinstance(data, AssetFields) else dict(data)

    unknown = set(raw) - UPDATABLE_FIELDS
    if unknown:
        name = sorted(unknown)[0]
        raise AssetValidationError(name, "is not an asset input field")

    procurement = _clean_str(raw.get("procurement_source"))

    return AssetFields(
        name=_required_str("name", raw.get("name"), NAME_MAX_LENGTH),
        unit=_required_str("unit", raw.get("unit"), UNIT_MAX_LENGTH),
        acquisition_date=_acquisition_date(raw.get("acquisition_date"), today),
        acquisition_price=_price(raw.get("acquisition_price")),
        category_id=_uuid("category_id", raw.get("category_id"), required=True),
        specification=_clean_str(raw.get("specification")),
        quantity=_non_negative_int("quantity", raw.get("quantity"), 1),
        economic_life_years=_non_negative_int(
            "economic_life_years", raw.get("economic_life_years"), 0,
        ),
        notes=_clean_str(raw.get("notes")),
        location_id=_uuid("location_id", raw.get("location_id"), required=False),
        procurement_source=procurement.lower() if procurement else None,
        status=_status(raw.get("status")),
    )


def check_references(fields: AssetFields, repository: AssetRepository) -> None:
    """
    Verify the category and (optional) location exist.

    Raises:
        CategoryNotFoundError: Unknown category.
        LocationNotFoundError: Unknown location.
    """
    if repository.get_category(fields.category_id) is None:
        raise CategoryNotFoundError(str(fields.category_id))
    if fields.location_id is not None and repository.get_location(fields.location_id) is None:
        raise LocationNotFoundError(str(fields.location_id))


def merge_changes(
    current: AssetFields,
    changes: Mapping[str, Any],
    current_code: str,
    asset_id: Any = None,
) -> dict[str, Any]:
    """
    Overlay a partial update on the current field values.

    Returns the merged mapping, to be passed through ``normalize_fields``.

    Raises:
        ImmutabilityViolationError: ``code`` changed.
        AssetValidationError: Unknown or derived field supplied.
    """
    merged = asdict(current)
    for key, value in changes.items():
        if key == "code":
            if value != current_code:
                raise ImmutabilityViolationError(
                    "asset", str(asset_id), "asset code cannot be changed once issued",
                )
            continue
        if key in DERIVED_FIELDS:
            raise AssetValidationError(key, "is computed and cannot be set")
        if key not in UPDATABLE_FIELDS:
            raise AssetValidationError(key, "is not an asset input field")
        merged[key] = value
    return merged


def check_code(code: str, config: AssetConfig) -> str:
    """
    Raises:
        AssetValidationError: Code longer than the storage limit.
    """
    if len(code) > config.max_code_length:
        raise AssetValidationError(
            "code", f"must be at most {config.max_code_length} characters",
        )
    return code
