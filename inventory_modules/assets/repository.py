"""
AssetRepository -- persistence collaborator for the asset register.

Responsibility:
    All SQL issued on behalf of the asset services: code scans for the
    allocator, existence checks, reference lookups and row writes.

Architecture position:
    Modules layer.  Owned by ``AssetService``; the allocator receives
    ``list_all_codes`` as its code source.

Invariants enforced:
    - Writes flush but never commit.  The calling service owns the
      transaction boundary.
    - Category and location codes and names are unique; ``add_category``
      and ``add_location`` check before insert.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.exceptions import DuplicateReferenceError
from inventory_kernel.logging_config import get_logger
from inventory_modules.assets.orm import AssetModel, CategoryModel, LocationModel

logger = get_logger("modules.assets.repository")


class AssetRepository:
    """SQLAlchemy-backed asset persistence."""

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    # Codes

    def list_all_codes(self, prefix: str | None = None) -> list[str]:
        """Every stored asset code, optionally filtered by prefix."""
        stmt = select(AssetModel.code)
        if prefix:
            stmt = stmt.where(AssetModel.code.startswith(prefix, autoescape=True))
        return list(self._session.execute(stmt).scalars().all())

    def list_assets(self) -> list[AssetModel]:
        """Every stored asset, ordered by code."""
        stmt = select(AssetModel).order_by(AssetModel.code)
        return list(self._session.execute(stmt).scalars().all())

    def code_exists(self, code: str, exclude_id: UUID | None = None) -> bool:
        stmt = select(AssetModel.id).where(AssetModel.code == code)
        if exclude_id is not None:
            stmt = stmt.where(AssetModel.id != exclude_id)
        return self._session.execute(stmt.limit(1)).first() is not None

    # Assets

    def insert_one(self, asset: AssetModel) -> AssetModel:
        self._session.add(asset)
        self._session.flush()
        return asset

    def insert_many(self, assets: Sequence[AssetModel]) -> list[AssetModel]:
        self._session.add_all(assets)
        self._session.flush()
        return list(assets)

    def get_asset(self, asset_id: UUID) -> AssetModel | None:
        return self._session.get(AssetModel, asset_id)

    def get_bulk_assets(self, bulk_id: UUID) -> list[AssetModel]:
        """Members of a bulk group ordered by ``bulk_sequence``."""
        result = self._session.execute(
            select(AssetModel)
            .where(AssetModel.bulk_id == bulk_id)
            .order_by(AssetModel.bulk_sequence, AssetModel.code)
        )
        return list(result.scalars().all())

    def delete(self, asset: AssetModel) -> None:
        self._session.delete(asset)
        self._session.flush()

    # References

    def get_category(self, category_id: UUID) -> CategoryModel | None:
        return self._session.get(CategoryModel, category_id)

    def get_location(self, location_id: UUID) -> LocationModel | None:
        return self._session.get(LocationModel, location_id)

    def get_category_by_code(self, code: str) -> CategoryModel | None:
        return self._session.execute(
            select(CategoryModel).where(CategoryModel.code == code)
        ).scalar_one_or_none()

    def get_location_by_code(self, code: str) -> LocationModel | None:
        return self._session.execute(
            select(LocationModel).where(LocationModel.code == code)
        ).scalar_one_or_none()

    def add_category(
        self,
        code: str,
        name: str,
        description: str | None = None,
        created_by_id: str | None = None,
    ) -> CategoryModel:
        """
        Insert a category.

        Raises:
            DuplicateReferenceError: If the code or name is taken.
        """
        self._check_unique(CategoryModel, "category", code, name)
        category = CategoryModel(
            code=code,
            name=name,
            description=description,
            created_by_id=created_by_id,
        )
        self._session.add(category)
        self._session.flush()
        logger.info(
            "category_added",
            extra={"category_id": str(category.id), "category_code": code},
        )
        return category

    def add_location(
        self,
        code: str,
        name: str,
        building: str | None = None,
        floor: str | None = None,
        room: str | None = None,
        created_by_id: str | None = None,
    ) -> LocationModel:
        """
        Insert a location.

        Raises:
            DuplicateReferenceError: If the code or name is taken.
        """
        self._check_unique(LocationModel, "location", code, name)
        location = LocationModel(
            code=code,
            name=name,
            building=building,
            floor=floor,
            room=room,
            created_by_id=created_by_id,
        )
        self._session.add(location)
        self._session.flush()
        logger.info(
            "location_added",
            extra={"location_id": str(location.id), "location_code": code},
        )
        return location

    def _check_unique(self, model, entity_type: str, code: str, name: str) -> None:
        for field_name, value in (("code", code), ("name", name)):
            column = getattr(model, field_name)
            taken = self._session.execute(
                select(model.id).where(column == value).limit(1)
            ).first()
            if taken is not None:
                raise DuplicateReferenceError(entity_type, field_name, value)
