"""
Asset Register ORM Models (``inventory_modules.assets.orm``).

Responsibility
--------------
SQLAlchemy persistence models for categories, locations and assets.
Maps the frozen domain dataclasses from ``models.py`` to database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``inventory_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``inventory_kernel``.

Invariants enforced
-------------------
* ``assets.code`` is unique (last line of defence for concurrent
  allocation; surfaces as ``DuplicateAssetCodeError``).
* Category and location ``code`` and ``name`` are unique.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_modules.assets.models import (
    Asset,
    AssetFields,
    AssetStatus,
    Category,
    DepreciationResult,
    Location,
)


# ---------------------------------------------------------------------------
# CategoryModel
# ---------------------------------------------------------------------------

class CategoryModel(TrackedBase):
    """
    ORM model for ``Category``.

    Table: ``asset_categories``
    """

    __tablename__ = "asset_categories"

    code: Mapped[str] = mapped_column(String(20))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("code", name="uq_asset_categories_code"),
        UniqueConstraint("name", name="uq_asset_categories_name"),
    )

    def to_dto(self) -> Category:
        return Category(
            id=self.id,
            code=self.code,
            name=self.name,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<CategoryModel(id={self.id!r}, code={self.code!r}, name={self.name!r})>"


# ---------------------------------------------------------------------------
# LocationModel
# ---------------------------------------------------------------------------

class LocationModel(TrackedBase):
    """
    ORM model for ``Location``.

    Table: ``locations``
    """

    __tablename__ = "locations"

    code: Mapped[str] = mapped_column(String(20))
    name: Mapped[str] = mapped_column(String(255))
    building: Mapped[str | None] = mapped_column(String(100), nullable=True)
    floor: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        UniqueConstraint("code", name="uq_locations_code"),
        UniqueConstraint("name", name="uq_locations_name"),
    )

    def to_dto(self) -> Location:
        return Location(
            id=self.id,
            code=self.code,
            name=self.name,
            building=self.building,
            floor=self.floor,
            room=self.room,
        )

    def __repr__(self) -> str:
        return f"<LocationModel(id={self.id!r}, code={self.code!r}, name={self.name!r})>"


# ---------------------------------------------------------------------------
# AssetModel
# ---------------------------------------------------------------------------

class AssetModel(TrackedBase):
    """
    ORM model for ``Asset``.

    Table: ``assets``
    """

    __tablename__ = "assets"

    code: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(255))
    specification: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(default=1)
    unit: Mapped[str] = mapped_column(String(50))
    acquisition_date: Mapped[date]
    acquisition_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    economic_life_years: Mapped[int] = mapped_column(default=0)
    economic_life_months: Mapped[int] = mapped_column(default=0)
    accumulated_depreciation: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    residual_value: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[UUID] = mapped_column(ForeignKey("asset_categories.id"))
    location_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("locations.id"), nullable=True,
    )
    procurement_source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=AssetStatus.GOOD.value)

    # Bulk group
    bulk_id: Mapped[UUID | None] = mapped_column(nullable=True)
    bulk_sequence: Mapped[int] = mapped_column(default=1)
    is_bulk_parent: Mapped[bool] = mapped_column(Boolean, default=False)
    bulk_total_count: Mapped[int] = mapped_column(default=1)

    __table_args__ = (
        UniqueConstraint("code", name="uq_assets_code"),
        Index("idx_assets_category_id", "category_id"),
        Index("idx_assets_location_id", "location_id"),
        Index("idx_assets_bulk_id", "bulk_id"),
        Index("idx_assets_status", "status"),
    )

    @classmethod
    def from_fields(
        cls,
        fields: AssetFields,
        code: str,
        depreciation: DepreciationResult,
        created_by_id: str | None = None,
        bulk_id: UUID | None = None,
        bulk_sequence: int = 1,
        is_bulk_parent: bool = False,
        bulk_total_count: int = 1,
    ) -> "AssetModel":
        return cls(
            code=code,
            name=fields.name,
            specification=fields.specification,
            quantity=1 if bulk_id is not None else fields.quantity,
            unit=fields.unit,
            acquisition_date=fields.acquisition_date,
            acquisition_price=fields.acquisition_price,
            economic_life_years=fields.economic_life_years,
            economic_life_months=depreciation.economic_life_months,
            accumulated_depreciation=depreciation.accumulated_depreciation,
            residual_value=depreciation.residual_value,
            notes=fields.notes,
            category_id=fields.category_id,
            location_id=fields.location_id,
            procurement_source=fields.procurement_source,
            status=AssetStatus(fields.status).value,
            bulk_id=bulk_id,
            bulk_sequence=bulk_sequence,
            is_bulk_parent=is_bulk_parent,
            bulk_total_count=bulk_total_count,
            created_by_id=created_by_id,
        )

    def to_fields(self) -> AssetFields:
        """Current caller-editable attributes, as an input record."""
        return AssetFields(
            name=self.name,
            unit=self.unit,
            acquisition_date=self.acquisition_date,
            acquisition_price=self.acquisition_price,
            category_id=self.category_id,
            specification=self.specification,
            quantity=self.quantity,
            economic_life_years=self.economic_life_years,
            notes=self.notes,
            location_id=self.location_id,
            procurement_source=self.procurement_source,
            status=AssetStatus(self.status),
        )

    def apply_fields(
        self,
        fields: AssetFields,
        depreciation: DepreciationResult,
        updated_by_id: str | None = None,
    ) -> None:
        """Overwrite editable attributes and the derived depreciation values."""
        self.name = fields.name
        self.specification = fields.specification
        self.quantity = 1 if self.bulk_id is not None else fields.quantity
        self.unit = fields.unit
        self.acquisition_date = fields.acquisition_date
        self.acquisition_price = fields.acquisition_price
        self.economic_life_years = fields.economic_life_years
        self.economic_life_months = depreciation.economic_life_months
        self.accumulated_depreciation = depreciation.accumulated_depreciation
        self.residual_value = depreciation.residual_value
        self.notes = fields.notes
        self.category_id = fields.category_id
        self.location_id = fields.location_id
        self.procurement_source = fields.procurement_source
        self.status = AssetStatus(fields.status).value
        self.updated_by_id = updated_by_id

    def to_dto(self) -> Asset:
        return Asset(
            id=self.id,
            code=self.code,
            name=self.name,
            unit=self.unit,
            acquisition_date=self.acquisition_date,
            acquisition_price=self.acquisition_price,
            category_id=self.category_id,
            specification=self.specification,
            quantity=self.quantity,
            economic_life_years=self.economic_life_years,
            economic_life_months=self.economic_life_months,
            accumulated_depreciation=self.accumulated_depreciation,
            residual_value=self.residual_value,
            notes=self.notes,
            location_id=self.location_id,
            procurement_source=self.procurement_source,
            status=AssetStatus(self.status),
            bulk_id=self.bulk_id,
            bulk_sequence=self.bulk_sequence,
            is_bulk_parent=self.is_bulk_parent,
            bulk_total_count=self.bulk_total_count,
            created_at=self.created_at,
            updated_at=self.updated_at,
            created_by_id=self.created_by_id,
            updated_by_id=self.updated_by_id,
        )

    def __repr__(self) -> str:
        return f"<AssetModel(id={self.id!r}, code={self.code!r}, name={self.name!r})>"
