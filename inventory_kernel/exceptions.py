"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the asset register (controllers, importers, scripts) must be
able to tell a bad request from a duplicate code from a missing category
without parsing message strings.  Every exception therefore carries:

  1. A TYPED class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. A KIND attribute (ErrorKind) that groups codes into the four
     categories a caller actually switches on
  4. Structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.create_asset(fields, actor)
    except Exception as e:
        if e.args[0] == "Category not found":  # FRAGILE
            ...

Example - RIGHT way (what this module enables):
    try:
        service.create_asset(fields, actor)
    except InventoryKernelError as e:
        if e.kind is ErrorKind.CONFLICT:
            retry_allocation()
        elif e.kind is ErrorKind.NOT_FOUND:
            return api_response(404, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base, kind=INTERNAL)
    |
    +-- ValidationError (kind=VALIDATION)
    |   +-- AssetValidationError
    |   +-- InvalidQuantityError
    |
    +-- ConflictError (kind=CONFLICT)
    |   +-- DuplicateAssetCodeError
    |   +-- DuplicateReferenceError
    |   +-- ImmutabilityViolationError
    |
    +-- NotFoundError (kind=NOT_FOUND)
    |   +-- CategoryNotFoundError
    |   +-- LocationNotFoundError
    |   +-- AssetNotFoundError
    |   +-- BulkGroupNotFoundError
    |
    +-- CodeGenerationError (kind=INTERNAL)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Kind        | Code                        | When Raised
------------|-----------------------------|-----------------------------------------
VALIDATION  | ASSET_VALIDATION_FAILED     | Missing/oversized/negative/future field
            | INVALID_QUANTITY            | Bulk quantity or range size < 1
------------|-----------------------------|-----------------------------------------
CONFLICT    | DUPLICATE_ASSET_CODE        | Derived code already issued
            | DUPLICATE_REFERENCE         | Category/location code or name reused
            | IMMUTABILITY_VIOLATION      | Audit entry updated or deleted via ORM
------------|-----------------------------|-----------------------------------------
NOT_FOUND   | CATEGORY_NOT_FOUND          | category_id does not resolve
            | LOCATION_NOT_FOUND          | location_id does not resolve
            | ASSET_NOT_FOUND             | asset id does not resolve
            | BULK_GROUP_NOT_FOUND        | bulk_id has no members
------------|-----------------------------|-----------------------------------------
INTERNAL    | CODE_GENERATION_FAILED      | Unexpected failure assembling a code

Audit-logging failures never surface as exceptions; AuditDiffEngine logs
and swallows them.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Coarse error category carried by every kernel exception."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"

    def __str__(self) -> str:
        return self.value


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification and a `kind` used for dispatch.
    """

    code: str = "INVENTORY_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.INTERNAL


# Validation


class ValidationError(InventoryKernelError):
    """Base exception for rejected input."""

    code: str = "VALIDATION_ERROR"
    kind: ErrorKind = ErrorKind.VALIDATION


class AssetValidationError(ValidationError):
    """An asset field failed validation."""

    code: str = "ASSET_VALIDATION_FAILED"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {reason}")


class InvalidQuantityError(ValidationError):
    """Bulk quantity or reservation size must be at least one."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be greater than 0, got {quantity}")


# Conflict


class ConflictError(InventoryKernelError):
    """Base exception for uniqueness and immutability conflicts."""

    code: str = "CONFLICT"
    kind: ErrorKind = ErrorKind.CONFLICT


class DuplicateAssetCodeError(ConflictError):
    """
    A derived asset code is already present.

    Raised by the pre-insert check and when the storage unique constraint
    rejects a concurrent insert.  Callers may retry allocation.
    """

    code: str = "DUPLICATE_ASSET_CODE"

    def __init__(self, asset_code: str):
        self.asset_code = asset_code
        super().__init__(f"Asset with code '{asset_code}' already exists")


class DuplicateReferenceError(ConflictError):
    """A category or location code/name is already taken."""

    code: str = "DUPLICATE_REFERENCE"

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field} '{value}' already exists")


class ImmutabilityViolationError(ConflictError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Not found


class NotFoundError(InventoryKernelError):
    """Base exception for unresolved references."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND


class CategoryNotFoundError(NotFoundError):
    """Category with given ID was not found."""

    code: str = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: str):
        self.category_id = str(category_id)
        super().__init__(f"Category not found: {category_id}")


class LocationNotFoundError(NotFoundError):
    """Location with given ID was not found."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: str):
        self.location_id = str(location_id)
        super().__init__(f"Location not found: {location_id}")


class AssetNotFoundError(NotFoundError):
    """Asset with given ID was not found."""

    code: str = "ASSET_NOT_FOUND"

    def __init__(self, asset_id: str):
        self.asset_id = str(asset_id)
        super().__init__(f"Asset not found: {asset_id}")


class BulkGroupNotFoundError(NotFoundError):
    """No assets share the given bulk ID."""

    code: str = "BULK_GROUP_NOT_FOUND"

    def __init__(self, bulk_id: str):
        self.bulk_id = str(bulk_id)
        super().__init__(f"Bulk assets not found: {bulk_id}")


# Internal


class CodeGenerationError(InventoryKernelError):
    """Unexpected failure while assembling an asset code."""

    code: str = "CODE_GENERATION_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Asset code generation failed: {reason}")
