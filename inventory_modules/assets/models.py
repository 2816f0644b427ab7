"""
Asset Register Domain Models.

The nouns of the asset register: assets, categories, locations, the
input fields for creating one, and the results handed back to callers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from inventory_kernel.domain.actor import SYSTEM_ACTOR, ActorContext
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.sequence_service import SequenceRange

logger = get_logger("modules.assets.models")

__all__ = [
    "ActorContext",
    "Asset",
    "AssetFields",
    "AssetStatus",
    "Category",
    "DepreciationResult",
    "ImportResult",
    "Location",
    "ProcurementSource",
    "SYSTEM_ACTOR",
    "SequenceRange",
]


class AssetStatus(str, Enum):
    """Physical condition of an asset."""
    GOOD = "baik"
    DAMAGED = "rusak"
    INADEQUATE = "tidak_memadai"


class ProcurementSource(str, Enum):
    """How an asset was acquired.  Drives the procurement code segment."""
    PURCHASE = "pembelian"
    ASSISTANCE = "bantuan"
    GRANT = "hibah"
    DONATION = "sumbangan"
    SELF_PRODUCED = "produksi_sendiri"


@dataclass(frozen=True)
class Category:
    """An asset category.  Its code is the second code segment."""
    id: UUID
    code: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class Location:
    """A physical location.  Its code is the first code segment."""
    id: UUID
    code: str
    name: str
    building: str | None = None
    floor: str | None = None
    room: str | None = None


@dataclass(frozen=True)
class AssetFields:
    """
    Caller-supplied attributes of a new asset.

    The code, depreciation values and bulk-group fields are derived and
    therefore not part of this input.
    """
    name: str
    unit: str
    acquisition_date: date
    acquisition_price: Decimal
    category_id: UUID
    specification: str | None = None
    quantity: int = 1
    economic_life_years: int = 0
    notes: str | None = None
    location_id: UUID | None = None
    procurement_source: str | None = None
    status: AssetStatus = AssetStatus.GOOD


@dataclass(frozen=True)
class DepreciationResult:
    """Point-in-time straight-line depreciation snapshot."""
    accumulated_depreciation: Decimal
    residual_value: Decimal
    economic_life_months: int


@dataclass(frozen=True)
class Asset:
    """A registered asset."""
    id: UUID
    code: str
    name: str
    unit: str
    acquisition_date: date
    acquisition_price: Decimal
    category_id: UUID
    specification: str | None = None
    quantity: int = 1
    economic_life_years: int = 0
    economic_life_months: int = 0
    accumulated_depreciation: Decimal = Decimal("0")
    residual_value: Decimal = Decimal("0")
    notes: str | None = None
    location_id: UUID | None = None
    procurement_source: str | None = None
    status: AssetStatus = AssetStatus.GOOD
    bulk_id: UUID | None = None
    bulk_sequence: int = 1
    is_bulk_parent: bool = False
    bulk_total_count: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by_id: str | None = None
    updated_by_id: str | None = None

    @property
    def is_bulk_member(self) -> bool:
        return self.bulk_id is not None


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a batch import.  Rows fail individually."""
    imported_count: int
    total_rows: int
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def status(self) -> str:
        return "partial_success" if self.errors else "success"
