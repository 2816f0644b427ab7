"""
BulkProvisioner -- N identical assets under one bulk group.

Responsibility:
    Creates ``quantity`` asset rows that share every business attribute,
    a ``bulk_id`` and identical depreciation values, with codes built from
    one contiguous range of sequence numbers.

Architecture position:
    Modules layer.  Called by ``AssetService`` after it has taken the
    allocation lock.  Flushes but never commits.

Invariants enforced:
    - ``bulk_sequence`` runs 1..N; only the first member is the parent;
      every member has ``quantity == 1`` and ``bulk_total_count == N``.
    - Every code is checked against storage before anything is written;
      one taken code fails the whole batch.
    - ``quantity == 1`` produces an ordinary single asset (no bulk fields).

Failure modes:
    - InvalidQuantityError: quantity < 1.
    - AssetValidationError / CategoryNotFoundError / LocationNotFoundError.
    - DuplicateAssetCodeError: a member code is already stored.
"""

from collections.abc import Mapping
from dataclasses import replace
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain.actor import SYSTEM_ACTOR, ActorContext
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import DuplicateAssetCodeError, InvalidQuantityError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.sequence_service import SequenceAllocator
from inventory_modules.assets.code_generator import CodeGenerator
from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.helpers import calculate_depreciation
from inventory_modules.assets.models import AssetFields
from inventory_modules.assets.orm import AssetModel
from inventory_modules.assets.repository import AssetRepository
from inventory_modules.assets.validation import check_code, check_references, normalize_fields

logger = get_logger("modules.assets.bulk")


class BulkProvisioner:
    """Builds and inserts the members of one bulk group."""

    def __init__(
        self,
        repository: AssetRepository,
        allocator: SequenceAllocator,
        code_generator: CodeGenerator,
        clock: Clock | None = None,
        config: AssetConfig | None = None,
    ):
        self._repository = repository
        self._allocator = allocator
        self._code_generator = code_generator
        self._clock = clock or SystemClock()
        self._config = config or AssetConfig.with_defaults()

    def create_bulk(
        self,
        fields: AssetFields | Mapping[str, Any],
        quantity: int,
        actor: ActorContext | None = None,
    ) -> list[AssetModel]:
        """Provision ``quantity`` assets from the lowest free sequence range."""
        if quantity < 1:
            raise InvalidQuantityError(quantity)
        normalized = self._prepare(fields)
        seq_range = self._allocator.next_sequence_range(quantity)
        return self._provision(normalized, quantity, seq_range.start, actor)

    def create_bulk_from_sequence(
        self,
        fields: AssetFields | Mapping[str, Any],
        quantity: int,
        start_sequence: int,
        actor: ActorContext | None = None,
    ) -> list[AssetModel]:
        """Provision ``quantity`` assets from a range the caller already reserved."""
        if quantity < 1:
            raise InvalidQuantityError(quantity)
        normalized = self._prepare(fields)
        return self._provision(normalized, quantity, start_sequence, actor)

    def _prepare(self, fields: AssetFields | Mapping[str, Any]) -> AssetFields:
        normalized = normalize_fields(fields, self._clock.today())
        check_references(normalized, self._repository)
        return normalized

    def _provision(
        self,
        fields: AssetFields,
        quantity: int,
        start_sequence: int,
        actor: ActorContext | None,
    ) -> list[AssetModel]:
        actor = actor or SYSTEM_ACTOR
        depreciation = calculate_depreciation(
            fields.acquisition_price,
            fields.economic_life_years,
            fields.acquisition_date,
            self._clock.today(),
        )
        bulk_id: UUID | None = uuid4() if quantity > 1 else None

        members: list[AssetModel] = []
        for i in range(quantity):
            code = check_code(
                self._code_generator.generate_code(
                    fields.category_id,
                    fields.location_id,
                    fields.procurement_source,
                    fields.acquisition_date,
                    start_sequence + i,
                ),
                self._config,
            )
            if self._repository.code_exists(code):
                logger.warning(
                    "bulk_code_conflict",
                    extra={"asset_code": code, "bulk_sequence": i + 1},
                )
                raise DuplicateAssetCodeError(code)

            if bulk_id is None:
                members.append(
                    AssetModel.from_fields(
                        replace(fields, quantity=1),
                        code,
                        depreciation,
                        created_by_id=actor.user_id,
                    )
                )
            else:
                members.append(
                    AssetModel.from_fields(
                        fields,
                        code,
                        depreciation,
                        created_by_id=actor.user_id,
                        bulk_id=bulk_id,
                        bulk_sequence=i + 1,
                        is_bulk_parent=(i == 0),
                        bulk_total_count=quantity,
                    )
                )

        try:
            self._repository.insert_many(members)
        except IntegrityError as exc:
            span = f"{members[0].code}..{members[-1].code}"
            logger.warning("bulk_code_constraint_violation", extra={"code_span": span})
            raise DuplicateAssetCodeError(span) from exc

        logger.info(
            "bulk_assets_provisioned",
            extra={
                "bulk_id": str(bulk_id) if bulk_id else None,
                "bulk_count": quantity,
                "first_code": members[0].code,
                "last_code": members[-1].code,
            },
        )
        return members
