"""
AuditDiffEngine -- field-level activity history for every mutation.

Responsibility:
    Turns before/after value snapshots of an asset (or a whole bulk group)
    into one append-only ``AuditLogEntry`` with a human-readable change set.
    Also serves activity-history queries and the retention sweep.

Architecture position:
    Kernel > Services -- imperative shell, called by the asset service for
    every create, update and delete.

Invariants enforced:
    - Snapshots are restricted to an allow-list of business fields plus the
      denormalized category/location code and name.  Timestamps and
      identifiers never appear in ``changes``.
    - Fields whose values are equal, or null/empty on both sides, are
      skipped.  An empty change set is stored as null.
    - Append-only: entries are never updated; only ``purge_older_than``
      removes them (bulk SQL DELETE).

Failure modes:
    - Recording never raises.  Any exception is logged as
      ``audit_log_failed`` and ``None`` is returned.  The insert runs in a
      savepoint so a failed audit write never rolls back the primary
      mutation in the same transaction.
    - Query methods propagate database errors to the caller.

Audit relevance:
    This IS the activity history.  ``AuditLogEntry.payload`` rebuilds the
    tagged variant (SingleChange or BulkSummary) for readers.
"""

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.actor import SYSTEM_ACTOR, ActorContext
from inventory_kernel.domain.audit_payload import BulkSummary, PayloadKind, SingleChange
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.audit_log import AuditAction, AuditLogEntry

logger = get_logger("services.auditor")

__all__ = [
    "AuditDiffEngine",
    "AuditPage",
    "BulkSummary",
    "DisplayFormat",
    "SingleChange",
    "compute_changes",
    "extract_snapshot",
    "format_value_for_display",
]

ENTITY_TYPES = frozenset({"asset", "category", "location"})

SNAPSHOT_FIELDS: tuple[str, ...] = (
    "id",
    "code",
    "name",
    "specification",
    "status",
    "acquisition_price",
    "acquisition_date",
    "quantity",
    "unit",
    "economic_life_years",
    "economic_life_months",
    "accumulated_depreciation",
    "residual_value",
    "notes",
    "category_id",
    "location_id",
    "procurement_source",
)

DENORMALIZED_FIELDS: tuple[str, ...] = (
    "category_code",
    "category_name",
    "location_code",
    "location_name",
)

DIFF_FIELDS: tuple[str, ...] = (
    "name",
    "code",
    "specification",
    "status",
    "acquisition_price",
    "acquisition_date",
    "quantity",
    "unit",
    "economic_life_years",
    "economic_life_months",
    "accumulated_depreciation",
    "residual_value",
    "notes",
    "category_code",
    "category_name",
    "location_code",
    "location_name",
    "procurement_source",
)

MONEY_FIELDS = frozenset(
    {"acquisition_price", "accumulated_depreciation", "residual_value"}
)

_MONTHS_ID = (
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
)

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisplayFormat:
    """Presentation settings for change-set values."""

    currency_prefix: str = "Rp\u00a0"
    long_text_limit: int = 30
    empty_marker: str = "-"
    true_label: str = "Ya"
    false_label: str = "Tidak"


DEFAULT_DISPLAY = DisplayFormat()


def _format_date(value: date) -> str:
    return f"{value.day} {_MONTHS_ID[value.month - 1]} {value.year}"


def _format_rupiah(value: Decimal, prefix: str) -> str:
    whole = round_money(value, decimal_places=0)
    sign = "-" if whole < 0 else ""
    grouped = f"{abs(int(whole)):,}".replace(",", ".")
    return f"{sign}{prefix}{grouped}"


def format_value_for_display(
    value: Any,
    field_name: str = "",
    display: DisplayFormat = DEFAULT_DISPLAY,
) -> str:
    """
    Render a snapshot value for the ``changes`` map.

    null/empty -> "-"; dates -> "1 Jun 2024"; money fields -> "Rp\u00a01.200.000";
    other numbers -> str; booleans -> "Ya"/"Tidak"; long strings truncated.
    """
    if value is None or value == "":
        return display.empty_marker

    if isinstance(value, bool):
        return display.true_label if value else display.false_label

    if isinstance(value, datetime):
        return _format_date(value.date())
    if isinstance(value, date):
        return _format_date(value)

    if isinstance(value, str) and _ISO_DATE_PREFIX.match(value):
        try:
            return _format_date(date.fromisoformat(value[:10]))
        except ValueError:
            return value

    if isinstance(value, Enum):
        value = value.value

    if isinstance(value, (int, float, Decimal)):
        if field_name in MONEY_FIELDS:
            return _format_rupiah(Decimal(str(value)), display.currency_prefix)
        return str(value)

    if isinstance(value, str) and len(value) > display.long_text_limit:
        return value[: display.long_text_limit] + "..."

    return str(value)


# ---------------------------------------------------------------------------
# Snapshots and diffs
# ---------------------------------------------------------------------------


def _read(data: Any, name: str) -> tuple[bool, Any]:
    if isinstance(data, Mapping):
        if name in data:
            return True, data[name]
        return False, None
    if hasattr(data, name):
        return True, getattr(data, name)
    return False, None


def extract_snapshot(
    data: Any,
    category: Any = None,
    location: Any = None,
) -> dict[str, Any] | None:
    """
    Build a flat value snapshot restricted to the allow-list.

    ``data`` may be a mapping or any object exposing the fields as
    attributes (ORM row or DTO).  ``category`` / ``location`` contribute
    their ``code`` and ``name`` as denormalized fields.  The result holds
    plain values, never live ORM references.
    """
    if data is None:
        return None

    snapshot: dict[str, Any] = {}
    for name in SNAPSHOT_FIELDS + DENORMALIZED_FIELDS:
        present, value = _read(data, name)
        if present:
            if isinstance(value, Enum):
                value = value.value
            snapshot[name] = value

    for prefix, ref in (("category", category), ("location", location)):
        if ref is None:
            continue
        for attr in ("code", "name"):
            present, value = _read(ref, attr)
            if present and value:
                snapshot[f"{prefix}_{attr}"] = value

    return snapshot


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float, Decimal)):
        return value == 0
    return False


def compute_changes(
    old: Mapping[str, Any],
    new: Mapping[str, Any],
    display: DisplayFormat = DEFAULT_DISPLAY,
) -> dict[str, dict[str, str]] | None:
    """
    Field-level diff over the diff allow-list.

    Returns ``{field: {"from": ..., "to": ...}}`` with display-formatted
    values, or None when nothing changed.
    """
    changes: dict[str, dict[str, str]] = {}
    for name in DIFF_FIELDS:
        before = old.get(name)
        after = new.get(name)
        if before == after:
            continue
        if _is_blank(before) and _is_blank(after):
            continue
        changes[name] = {
            "from": format_value_for_display(before, name, display),
            "to": format_value_for_display(after, name, display),
        }
    return changes or None


def _to_json(value: Any) -> Any:
    """Convert snapshot values to JSON-storable primitives."""
    if isinstance(value, Mapping):
        return {str(k): _to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditPage:
    """One page of activity history, newest first."""

    items: tuple[AuditLogEntry, ...]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class AuditDiffEngine:
    """
    Records and queries activity history.

    Contract:
        ``record`` / ``record_bulk`` flush inside a savepoint of the
        caller's transaction and never commit.  The caller's commit makes
        the entry durable together with the primary write.

    Guarantees:
        - Exactly one entry per call, or None if recording failed.
        - ``created_at`` comes from the injected clock.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        display: DisplayFormat | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._display = display or DEFAULT_DISPLAY

    def _insert(
        self,
        *,
        entity_type: str,
        entity_id: str,
        action: AuditAction,
        payload_kind: PayloadKind,
        changes: dict | None,
        old_values: dict | None,
        new_values: dict | None,
        description: str,
        actor: ActorContext,
    ) -> AuditLogEntry:
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"Unknown audit entity type: {entity_type}")

        entry = AuditLogEntry(
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction(action).value,
            payload_kind=payload_kind.value,
            changes=changes,
            old_values=_to_json(old_values) if old_values is not None else None,
            new_values=_to_json(new_values) if new_values is not None else None,
            user_id=actor.user_id,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
            description=description,
            created_at=self._clock.now(),
        )
        with self._session.begin_nested():
            self._session.add(entry)
            self._session.flush()
        return entry

    def record(
        self,
        entity_type: str,
        entity_id: Any,
        action: AuditAction,
        old: Mapping[str, Any] | None = None,
        new: Mapping[str, Any] | None = None,
        description: str = "",
        actor: ActorContext | None = None,
    ) -> AuditLogEntry | None:
        """
        Record one entity mutation.

        ``old`` is None for create, ``new`` is None for delete.  The change
        set is only computed when both sides are present.
        """
        actor = actor or SYSTEM_ACTOR
        try:
            old_snapshot = extract_snapshot(old)
            new_snapshot = extract_snapshot(new)
            changes = None
            if old_snapshot and new_snapshot:
                changes = compute_changes(old_snapshot, new_snapshot, self._display)

            entry = self._insert(
                entity_type=entity_type,
                entity_id=str(entity_id),
                action=action,
                payload_kind=PayloadKind.SINGLE,
                changes=changes,
                old_values=old_snapshot,
                new_values=new_snapshot,
                description=description,
                actor=actor,
            )
        except Exception:
            logger.error(
                "audit_log_failed",
                exc_info=True,
                extra={
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "action": str(getattr(action, "value", action)),
                },
            )
            return None

        logger.info(
            "audit_log_recorded",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": entry.action,
                "changed_fields": sorted(changes) if changes else [],
            },
        )
        return entry

    def record_bulk(
        self,
        entity_type: str,
        bulk_id: Any,
        action: AuditAction,
        old_members: Sequence[Mapping[str, Any]] | None = None,
        new_members: Sequence[Mapping[str, Any]] | None = None,
        description: str = "",
        actor: ActorContext | None = None,
    ) -> AuditLogEntry | None:
        """
        Record one mutation of a whole bulk group.

        The entity id is the bulk id.  Both sides are stored as
        ``BulkSummary`` values; no per-field change set is computed.
        """
        actor = actor or SYSTEM_ACTOR
        bulk_key = str(bulk_id)
        try:
            old_summary = None
            new_summary = None
            if old_members is not None:
                old_summary = BulkSummary(
                    bulk_id=bulk_key,
                    bulk_count=len(old_members),
                    assets=tuple(extract_snapshot(m) for m in old_members),
                )
            if new_members is not None:
                new_summary = BulkSummary(
                    bulk_id=bulk_key,
                    bulk_count=len(new_members),
                    assets=tuple(extract_snapshot(m) for m in new_members),
                )

            entry = self._insert(
                entity_type=entity_type,
                entity_id=bulk_key,
                action=action,
                payload_kind=PayloadKind.BULK_SUMMARY,
                changes=None,
                old_values=old_summary.to_dict() if old_summary else None,
                new_values=new_summary.to_dict() if new_summary else None,
                description=description,
                actor=actor,
            )
        except Exception:
            logger.error(
                "audit_log_failed",
                exc_info=True,
                extra={
                    "entity_type": entity_type,
                    "bulk_id": bulk_key,
                    "action": str(getattr(action, "value", action)),
                },
            )
            return None

        summary = new_summary or old_summary
        logger.info(
            "audit_bulk_log_recorded",
            extra={
                "entity_type": entity_type,
                "bulk_id": bulk_key,
                "action": entry.action,
                "bulk_count": summary.bulk_count if summary else 0,
            },
        )
        return entry

    # Queries

    def get_activity_history(
        self,
        entity_type: str,
        entity_id: Any,
    ) -> list[AuditLogEntry]:
        """All entries for one entity, newest first."""
        result = self._session.execute(
            select(AuditLogEntry)
            .where(
                AuditLogEntry.entity_type == entity_type,
                AuditLogEntry.entity_id == str(entity_id),
            )
            .order_by(AuditLogEntry.created_at.desc())
        )
        return list(result.scalars().all())

    def list_activity(
        self,
        entity_type: str | None = None,
        action: AuditAction | str | None = None,
        page: int = 1,
        page_size: int = 10,
        *,
        entity_id: Any = None,
        user_id: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> AuditPage:
        """Paginated, filtered activity history, newest first."""
        page = max(page, 1)
        page_size = max(page_size, 1)

        conditions = []
        if entity_type:
            conditions.append(AuditLogEntry.entity_type == entity_type)
        if entity_id is not None:
            conditions.append(AuditLogEntry.entity_id == str(entity_id))
        if action:
            conditions.append(AuditLogEntry.action == AuditAction(action).value)
        if user_id:
            conditions.append(AuditLogEntry.user_id == user_id)
        if from_date is not None:
            conditions.append(AuditLogEntry.created_at >= from_date)
        if to_date is not None:
            conditions.append(AuditLogEntry.created_at <= to_date)

        total = self._session.execute(
            select(func.count()).select_from(AuditLogEntry).where(*conditions)
        ).scalar_one()

        rows = self._session.execute(
            select(AuditLogEntry)
            .where(*conditions)
            .order_by(AuditLogEntry.created_at.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        ).scalars().all()

        return AuditPage(
            items=tuple(rows),
            total=total,
            page=page,
            page_size=page_size,
        )

    # Retention

    def purge_older_than(self, retention_days: int = 90) -> int:
        """
        Delete entries created before ``now - retention_days``.

        Uses a bulk DELETE so ORM immutability listeners are not involved.
        Does not commit.

        Returns:
            Number of entries removed.
        """
        if retention_days < 0:
            raise ValueError("retention_days must be >= 0")

        cutoff = self._clock.now() - timedelta(days=retention_days)
        result = self._session.execute(
            delete(AuditLogEntry)
            .where(AuditLogEntry.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        deleted = result.rowcount or 0
        logger.info(
            "audit_logs_purged",
            extra={
                "retention_days": retention_days,
                "cutoff": cutoff.isoformat(),
                "deleted_count": deleted,
            },
        )
        return deleted
