"""
Asset Register Service (``inventory_modules.assets.service``).

Responsibility
--------------
Facade exposed to controllers and importers.  Creates, updates and
deletes assets and bulk groups by composing the ``SequenceAllocator``,
``CodeGenerator``, ``BulkProvisioner``, depreciation helpers and the
``AuditDiffEngine``.

Architecture position
---------------------
**Modules layer** -- the sole public entry point for asset mutations.
Owns the transaction boundary for every public mutating method.

Invariants enforced
-------------------
* Each mutating call runs in one transaction: validate, lock the
  allocation counter, allocate, generate, pre-check, insert, audit,
  commit.  Any exception rolls the whole call back.
* The allocation lock is held from allocation until commit, so two
  concurrent creates cannot persist the same sequence number.
* Every mutating call records exactly one audit entry (``record`` for a
  single asset, ``record_bulk`` for a bulk group).  The depreciation
  refresh records one entry per asset it changes.
* Asset codes never change after issue.
* Deleting one member of a bulk group re-packs the survivors so their
  ``bulk_sequence`` values stay 1..N with the first one as parent.

Failure modes
-------------
* Validation / not-found / conflict errors  -> typed exceptions from
  ``inventory_kernel.exceptions``; session rolled back.
* Storage unique-constraint collision on ``code``  ->
  ``DuplicateAssetCodeError``; session rolled back.
* Audit write failure  -> logged by the auditor; the mutation commits.

Audit relevance
---------------
Structured log events at operation start and commit for every public
method, carrying asset ids, codes and bulk ids.

Usage::

    service = AssetService(session, clock)
    asset = service.create_asset(fields, ActorContext(user_id="u-1"))
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.actor import SYSTEM_ACTOR, ActorContext
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import (
    AssetNotFoundError,
    BulkGroupNotFoundError,
    DuplicateAssetCodeError,
    InvalidQuantityError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.audit_log import AuditAction
from inventory_kernel.services.auditor_service import AuditDiffEngine, extract_snapshot
from inventory_kernel.services.sequence_service import SequenceAllocator, SequenceRange
from inventory_modules.assets.bulk import BulkProvisioner
from inventory_modules.assets.code_generator import CodeGenerator
from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.helpers import calculate_depreciation
from inventory_modules.assets.models import Asset, AssetFields
from inventory_modules.assets.orm import AssetModel
from inventory_modules.assets.repository import AssetRepository
from inventory_modules.assets.validation import (
    check_code,
    check_references,
    merge_changes,
    normalize_fields,
)

logger = get_logger("modules.assets.service")

ENTITY_TYPE = "asset"


class AssetService:
    """
    Orchestrates asset register operations.

    Transaction boundary: this service commits on success, rolls back on
    any exception.  Collaborators flush but never commit.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: AssetConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or AssetConfig.with_defaults()

        self._repository = AssetRepository(session)
        self._allocator = SequenceAllocator(session, self._repository.list_all_codes)
        self._code_generator = CodeGenerator(self._repository, self._config)
        self._auditor = AuditDiffEngine(
            session, self._clock, self._config.display_format(),
        )
        self._provisioner = BulkProvisioner(
            self._repository,
            self._allocator,
            self._code_generator,
            self._clock,
            self._config,
        )

    @property
    def repository(self) -> AssetRepository:
        return self._repository

    @property
    def auditor(self) -> AuditDiffEngine:
        return self._auditor

    # =========================================================================
    # Internals
    # =========================================================================

    def _snapshot(self, asset: AssetModel) -> dict[str, Any]:
        category = self._repository.get_category(asset.category_id)
        location = (
            self._repository.get_location(asset.location_id)
            if asset.location_id is not None
            else None
        )
        return extract_snapshot(asset, category=category, location=location)

    def _prepare(self, fields: AssetFields | Mapping[str, Any]) -> AssetFields:
        normalized = normalize_fields(fields, self._clock.today())
        check_references(normalized, self._repository)
        return normalized

    def _insert_single(
        self,
        fields: AssetFields,
        sequence: int,
        actor: ActorContext,
    ) -> AssetModel:
        code = check_code(
            self._code_generator.generate_code(
                fields.category_id,
                fields.location_id,
                fields.procurement_source,
                fields.acquisition_date,
                sequence,
            ),
            self._config,
        )
        if self._repository.code_exists(code):
            raise DuplicateAssetCodeError(code)

        depreciation = calculate_depreciation(
            fields.acquisition_price,
            fields.economic_life_years,
            fields.acquisition_date,
            self._clock.today(),
        )
        asset = AssetModel.from_fields(
            fields, code, depreciation, created_by_id=actor.user_id,
        )
        try:
            self._repository.insert_one(asset)
        except IntegrityError as exc:
            logger.warning("asset_code_constraint_violation", extra={"asset_code": code})
            raise DuplicateAssetCodeError(code) from exc
        return asset

    def _create_single(
        self,
        fields: AssetFields | Mapping[str, Any],
        sequence: int | None,
        actor: ActorContext | None,
    ) -> Asset:
        actor = actor or SYSTEM_ACTOR
        with LogContext.bind(actor_id=actor.user_id, request_ip=actor.ip_address):
            try:
                logger.info("asset_create_started", extra={"sequence": sequence})

                normalized = self._prepare(fields)
                self._allocator.lock()
                if sequence is None:
                    sequence = self._allocator.next_sequence()
                asset = self._insert_single(normalized, sequence, actor)

                self._auditor.record(
                    ENTITY_TYPE,
                    asset.id,
                    AuditAction.CREATE,
                    new=self._snapshot(asset),
                    description=f"Asset created: {asset.name} ({asset.code})",
                    actor=actor,
                )
                self._session.commit()

                logger.info(
                    "asset_created",
                    extra={
                        "asset_id": str(asset.id),
                        "asset_code": asset.code,
                        "sequence": sequence,
                    },
                )
                return asset.to_dto()

            except Exception:
                self._session.rollback()
                raise

    def _create_bulk(
        self,
        fields: AssetFields | Mapping[str, Any],
        quantity: int,
        start_sequence: int | None,
        actor: ActorContext | None,
    ) -> list[Asset]:
        actor = actor or SYSTEM_ACTOR
        if quantity < 1:
            raise InvalidQuantityError(quantity)

        if quantity == 1:
            try:
                single = replace(self._prepare(fields), quantity=1)
            except Exception:
                self._session.rollback()
                raise
            return [self._create_single(single, start_sequence, actor)]

        with LogContext.bind(actor_id=actor.user_id, request_ip=actor.ip_address):
            try:
                logger.info(
                    "bulk_asset_create_started",
                    extra={"bulk_count": quantity, "start_sequence": start_sequence},
                )

                self._allocator.lock()
                if start_sequence is None:
                    members = self._provisioner.create_bulk(fields, quantity, actor)
                else:
                    members = self._provisioner.create_bulk_from_sequence(
                        fields, quantity, start_sequence, actor,
                    )

                bulk_id = members[0].bulk_id
                self._auditor.record_bulk(
                    ENTITY_TYPE,
                    bulk_id,
                    AuditAction.CREATE,
                    new_members=[self._snapshot(m) for m in members],
                    description=f"Bulk assets created: {quantity} items",
                    actor=actor,
                )
                self._session.commit()

                logger.info(
                    "bulk_assets_created",
                    extra={
                        "bulk_id": str(bulk_id),
                        "bulk_count": quantity,
                        "first_code": members[0].code,
                        "last_code": members[-1].code,
                    },
                )
                return [m.to_dto() for m in members]

            except Exception:
                self._session.rollback()
                raise

    def _load_asset(self, asset_id: UUID) -> AssetModel:
        asset = self._repository.get_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(str(asset_id))
        return asset

    def _load_bulk(self, bulk_id: UUID) -> list[AssetModel]:
        members = self._repository.get_bulk_assets(bulk_id)
        if not members:
            raise BulkGroupNotFoundError(str(bulk_id))
        return members

    def _apply_changes(
        self,
        asset: AssetModel,
        changes: Mapping[str, Any],
        actor: ActorContext,
    ) -> None:
        merged = merge_changes(asset.to_fields(), changes, asset.code, asset.id)
        normalized = self._prepare(merged)
        depreciation = calculate_depreciation(
            normalized.acquisition_price,
            normalized.economic_life_years,
            normalized.acquisition_date,
            self._clock.today(),
        )
        asset.apply_fields(normalized, depreciation, updated_by_id=actor.user_id)

    # =========================================================================
    # Create
    # =========================================================================

    def create_asset(
        self,
        fields: AssetFields | Mapping[str, Any],
        actor: ActorContext | None = None,
    ) -> Asset:
        """Create one asset with the lowest free sequence number."""
        return self._create_single(fields, None, actor)

    def create_asset_with_sequence(
        self,
        fields: AssetFields | Mapping[str, Any],
        sequence: int,
        actor: ActorContext | None = None,
    ) -> Asset:
        """Create one asset with a sequence number the caller reserved."""
        return self._create_single(fields, sequence, actor)

    def create_bulk_asset(
        self,
        fields: AssetFields | Mapping[str, Any],
        quantity: int,
        actor: ActorContext | None = None,
    ) -> list[Asset]:
        """
        Create ``quantity`` identical assets in one bulk group.

        Raises:
            InvalidQuantityError: quantity < 1.
            DuplicateAssetCodeError: any member code is already taken.
        """
        return self._create_bulk(fields, quantity, None, actor)

    def create_bulk_asset_with_sequence(
        self,
        fields: AssetFields | Mapping[str, Any],
        quantity: int,
        start_sequence: int,
        actor: ActorContext | None = None,
    ) -> list[Asset]:
        """Bulk create from ``start_sequence`` .. ``start_sequence + quantity - 1``."""
        return self._create_bulk(fields, quantity, start_sequence, actor)

    # =========================================================================
    # Update
    # =========================================================================

    def update_asset(
        self,
        asset_id: UUID,
        changes: Mapping[str, Any],
        actor: ActorContext | None = None,
    ) -> Asset:
        """
        Apply a partial update and recompute depreciation.

        Raises:
            AssetNotFoundError: Unknown asset.
            ImmutabilityViolationError: ``changes`` alters the code.
            AssetValidationError: Invalid or non-editable field.
        """
        actor = actor or SYSTEM_ACTOR
        with LogContext.bind(
            actor_id=actor.user_id, request_ip=actor.ip_address, asset_id=str(asset_id),
        ):
            try:
                logger.info(
                    "asset_update_started",
                    extra={"fields": sorted(changes.keys())},
                )

                asset = self._load_asset(asset_id)
                old = self._snapshot(asset)
                self._apply_changes(asset, changes, actor)
                self._session.flush()

                self._auditor.record(
                    ENTITY_TYPE,
                    asset.id,
                    AuditAction.UPDATE,
                    old=old,
                    new=self._snapshot(asset),
                    description=f"Asset updated: {asset.name} ({asset.code})",
                    actor=actor,
                )
                self._session.commit()

                logger.info(
                    "asset_updated",
                    extra={"asset_id": str(asset.id), "asset_code": asset.code},
                )
                return asset.to_dto()

            except Exception:
                self._session.rollback()
                raise

    def update_bulk_assets(
        self,
        bulk_id: UUID,
        changes: Mapping[str, Any],
        actor: ActorContext | None = None,
    ) -> list[Asset]:
        """Apply the same partial update to every member of a bulk group."""
        actor = actor or SYSTEM_ACTOR
        with LogContext.bind(
            actor_id=actor.user_id, request_ip=actor.ip_address, bulk_id=str(bulk_id),
        ):
            try:
                logger.info(
                    "bulk_asset_update_started",
                    extra={"fields": sorted(changes.keys())},
                )

                members = self._load_bulk(bulk_id)
                old = [self._snapshot(m) for m in members]
                for member in members:
                    self._apply_changes(member, changes, actor)
                self._session.flush()

                self._auditor.record_bulk(
                    ENTITY_TYPE,
                    bulk_id,
                    AuditAction.UPDATE,
                    old_members=old,
                    new_members=[self._snapshot(m) for m in members],
                    description=(
                        f"Bulk assets updated: {members[0].name} ({len(members)} items)"
                    ),
                    actor=actor,
                )
                self._session.commit()

                logger.info(
                    "bulk_assets_updated",
                    extra={"bulk_id": str(bulk_id), "bulk_count": len(members)},
                )
                return [m.to_dto() for m in members]

            except Exception:
                self._session.rollback()
                raise

    def refresh_depreciation(self, actor: ActorContext | None = None) -> int:
        """
        Recompute the depreciation snapshot of every asset as of today.

        Only assets whose economic life months, accumulated depreciation or
        residual value moved are written, each with its own ``update``
        audit entry.  Runs in one transaction.

        Returns:
            Number of assets whose values changed.
        """
        actor = actor or SYSTEM_ACTOR
        as_of = self._clock.today()
        with LogContext.bind(actor_id=actor.user_id, request_ip=actor.ip_address):
            try:
                logger.info("depreciation_refresh_started", extra={"as_of": as_of})

                assets = self._repository.list_assets()
                updated = 0
                for asset in assets:
                    result = calculate_depreciation(
                        asset.acquisition_price,
                        asset.economic_life_years,
                        asset.acquisition_date,
                        as_of,
                    )
                    if (
                        asset.economic_life_months == result.economic_life_months
                        and asset.accumulated_depreciation == result.accumulated_depreciation
                        and asset.residual_value == result.residual_value
                    ):
                        continue

                    old = self._snapshot(asset)
                    asset.economic_life_months = result.economic_life_months
                    asset.accumulated_depreciation = result.accumulated_depreciation
                    asset.residual_value = result.residual_value
                    asset.updated_by_id = actor.user_id
                    self._session.flush()

                    self._auditor.record(
                        ENTITY_TYPE,
                        asset.id,
                        AuditAction.UPDATE,
                        old=old,
                        new=self._snapshot(asset),
                        description=f"Depreciation recalculated: {asset.name} ({asset.code})",
                        actor=actor,
                    )
                    updated += 1

                self._session.commit()

                logger.info(
                    "depreciation_refreshed",
                    extra={
                        "as_of": as_of,
                        "checked_count": len(assets),
                        "updated_count": updated,
                    },
                )
                return updated

            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Delete
    # =========================================================================

    def delete_asset(
        self,
        asset_id: UUID,
        actor: ActorContext | None = None,
    ) -> None:
        """
        Delete one asset.  Its sequence number becomes free for reuse.

        If it belonged to a bulk group the remaining members are re-packed
        to ``bulk_sequence`` 1..N-1, the first one becomes the parent and
        ``bulk_total_count`` is updated.
        """
        actor = actor or SYSTEM_ACTOR
        with LogContext.bind(
            actor_id=actor.user_id, request_ip=actor.ip_address, asset_id=str(asset_id),
        ):
            try:
                logger.info("asset_delete_started")

                asset = self._load_asset(asset_id)
                old = self._snapshot(asset)
                name, code, bulk_id = asset.name, asset.code, asset.bulk_id
                self._repository.delete(asset)

                remaining = 0
                if bulk_id is not None:
                    survivors = self._repository.get_bulk_assets(bulk_id)
                    remaining = len(survivors)
                    for i, member in enumerate(survivors):
                        member.bulk_sequence = i + 1
                        member.is_bulk_parent = i == 0
                        member.bulk_total_count = remaining
                        member.updated_by_id = actor.user_id
                    self._session.flush()

                self._auditor.record(
                    ENTITY_TYPE,
                    asset_id,
                    AuditAction.DELETE,
                    old=old,
                    description=f"Asset deleted: {name} ({code})",
                    actor=actor,
                )
                self._session.commit()

                logger.info(
                    "asset_deleted",
                    extra={
                        "asset_id": str(asset_id),
                        "asset_code": code,
                        "bulk_id": str(bulk_id) if bulk_id else None,
                        "bulk_remaining": remaining,
                    },
                )

            except Exception:
                self._session.rollback()
                raise

    def delete_bulk_assets(
        self,
        bulk_id: UUID,
        actor: ActorContext | None = None,
    ) -> int:
        """Delete every member of a bulk group.  Returns the number removed."""
        actor = actor or SYSTEM_ACTOR
        with LogContext.bind(
            actor_id=actor.user_id, request_ip=actor.ip_address, bulk_id=str(bulk_id),
        ):
            try:
                logger.info("bulk_asset_delete_started")

                members = self._load_bulk(bulk_id)
                old = [self._snapshot(m) for m in members]
                name = members[0].name
                for member in members:
                    self._repository.delete(member)

                self._auditor.record_bulk(
                    ENTITY_TYPE,
                    bulk_id,
                    AuditAction.DELETE,
                    old_members=old,
                    description=f"Bulk assets deleted: {name} ({len(old)} items)",
                    actor=actor,
                )
                self._session.commit()

                logger.info(
                    "bulk_assets_deleted",
                    extra={"bulk_id": str(bulk_id), "bulk_count": len(old)},
                )
                return len(old)

            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Queries
    # =========================================================================

    def get_asset(self, asset_id: UUID) -> Asset:
        return self._load_asset(asset_id).to_dto()

    def get_bulk_assets(self, bulk_id: UUID) -> list[Asset]:
        return [m.to_dto() for m in self._load_bulk(bulk_id)]

    def next_sequence(self) -> int:
        """Preview of the next single sequence number.  Takes no lock."""
        return self._allocator.next_sequence()

    def next_sequence_range(self, count: int) -> SequenceRange:
        """Preview of the next free range.  Takes no lock."""
        return self._allocator.next_sequence_range(count)
