"""
AssetImportService -- batch import of already-parsed rows.

Responsibility:
    Takes rows produced by a spreadsheet/CSV parser (parsing itself is the
    caller's job), reserves one sequence range for the whole batch and
    creates the rows one at a time in input order.

Architecture position:
    Modules layer.  A caller of ``AssetService``; each row is its own
    transaction, so one bad row never undoes the rows before it.

Invariants enforced:
    - Rows with ``quantity > 1`` and a bulk-eligible unit occupy
      ``quantity`` sequence slots and become a bulk group; every other
      row occupies one slot.
    - The sequence cursor advances only when a row succeeds, so codes
      stay contiguous across failed rows.

Failure modes:
    - Per-row typed errors are collected into ``ImportResult.errors``;
      the import continues.  Untyped errors propagate.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from inventory_kernel.domain.actor import SYSTEM_ACTOR, ActorContext
from inventory_kernel.exceptions import (
    AssetValidationError,
    CategoryNotFoundError,
    InventoryKernelError,
    LocationNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.models import ImportResult
from inventory_modules.assets.service import AssetService

logger = get_logger("modules.assets.importer")

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")

_PASSTHROUGH_FIELDS = (
    "name",
    "unit",
    "acquisition_price",
    "specification",
    "economic_life_years",
    "notes",
    "procurement_source",
    "status",
)


def parse_flexible_date(value: Any) -> date:
    """
    Accept a date object or a string in YYYY-MM-DD, DD/MM/YYYY or DD-MM-YYYY.

    Raises:
        AssetValidationError: Unsupported format.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise AssetValidationError(
        "acquisition_date",
        f"unsupported date format: {text} (supported: YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY)",
    )


class AssetImportService:
    """Imports parsed rows through ``AssetService``."""

    def __init__(self, service: AssetService, config: AssetConfig | None = None):
        self._service = service
        self._repository = service.repository
        self._config = config or AssetConfig.with_defaults()

    def _resolve(self, row: Mapping[str, Any]) -> tuple[dict[str, Any], int]:
        """Translate one row into asset fields and its quantity."""
        fields: dict[str, Any] = {
            name: row[name] for name in _PASSTHROUGH_FIELDS if name in row
        }
        fields["acquisition_date"] = parse_flexible_date(row.get("acquisition_date"))

        category_code = str(row.get("category_code") or "").strip()
        if row.get("category_id"):
            fields["category_id"] = row["category_id"]
        elif category_code:
            category = self._repository.get_category_by_code(category_code)
            if category is None:
                raise CategoryNotFoundError(f"code '{category_code}'")
            fields["category_id"] = category.id

        location_code = str(row.get("location_code") or "").strip()
        if row.get("location_id"):
            fields["location_id"] = row["location_id"]
        elif location_code:
            location = self._repository.get_location_by_code(location_code)
            if location is None:
                raise LocationNotFoundError(f"code '{location_code}'")
            fields["location_id"] = location.id

        raw_quantity = row.get("quantity")
        try:
            quantity = int(str(raw_quantity).strip()) if raw_quantity not in (None, "") else 1
        except ValueError:
            raise AssetValidationError("quantity", f"invalid quantity value: {raw_quantity}") from None
        fields["quantity"] = quantity
        return fields, quantity

    def _slots(self, fields: Mapping[str, Any], quantity: int) -> int:
        if quantity > 1 and self._config.is_bulk_eligible(fields.get("unit")):
            return quantity
        return 1

    def import_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        actor: ActorContext | None = None,
    ) -> ImportResult:
        """
        Create every row, in order, from one reserved sequence range.

        Returns:
            ImportResult with the number of assets created (bulk members
            counted individually), the number of input rows and one
            message per failed row.
        """
        actor = actor or SYSTEM_ACTOR
        rows = list(rows)
        errors: list[str] = []

        resolved: list[tuple[str, dict[str, Any], int]] = []
        for row in rows:
            name = str(row.get("name") or "").strip()
            try:
                fields, quantity = self._resolve(row)
            except InventoryKernelError as exc:
                errors.append(f"Failed to import asset '{name}': {exc}")
                continue
            resolved.append((name, fields, quantity))

        total_slots = sum(self._slots(f, q) for _, f, q in resolved)
        logger.info(
            "asset_import_started",
            extra={"total_rows": len(rows), "total_slots": total_slots},
        )

        imported = 0
        if total_slots:
            cursor = self._service.next_sequence_range(total_slots).start
            for name, fields, quantity in resolved:
                if self._slots(fields, quantity) > 1:
                    try:
                        created = self._service.create_bulk_asset_with_sequence(
                            fields, quantity, cursor, actor,
                        )
                    except InventoryKernelError as exc:
                        errors.append(f"Failed to import bulk asset '{name}': {exc}")
                        continue
                    imported += len(created)
                    cursor += quantity
                else:
                    try:
                        self._service.create_asset_with_sequence(fields, cursor, actor)
                    except InventoryKernelError as exc:
                        errors.append(f"Failed to import asset '{name}': {exc}")
                        continue
                    imported += 1
                    cursor += 1

        result = ImportResult(
            imported_count=imported,
            total_rows=len(rows),
            errors=tuple(errors),
        )
        logger.info(
            "asset_import_completed",
            extra={
                "imported_count": result.imported_count,
                "total_rows": result.total_rows,
                "error_count": len(result.errors),
                "status": result.status,
            },
        )
        return result
