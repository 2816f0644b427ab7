"""
Module: inventory_kernel.models.audit_log
Responsibility: ORM persistence for the activity history of assets,
    categories and locations.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Append-only: no UPDATE or DELETE through the ORM (db/immutability.py).
      Only the retention sweep removes rows, with a bulk SQL DELETE.
    - payload_kind is always set; ``changes`` is only populated for
      ``single`` entries.

Failure modes:
    - ImmutabilityViolationError on any ORM UPDATE/DELETE attempt.

Audit relevance:
    AuditLogEntry IS the activity history.  Every create, update and
    delete of an asset (single or bulk) produces exactly one entry.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base
from inventory_kernel.domain.audit_payload import (
    AuditPayload,
    BulkSummary,
    PayloadKind,
    SingleChange,
)


class AuditAction(str, Enum):
    """Types of auditable actions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditLogEntry(Base):
    """
    One row of activity history.

    Guarantees:
        - ``entity_id`` is the asset id for single entries and the bulk id
          for bulk summaries.
        - ``old_values`` is null for create, ``new_values`` is null for delete.
    """

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("idx_audit_logs_entity", "entity_type", "entity_id"),
        Index("idx_audit_logs_action", "action"),
        Index("idx_audit_logs_created_at", "created_at"),
    )

    # "asset", "category" or "location"
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)

    action: Mapped[str] = mapped_column(String(20), nullable=False)

    payload_kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PayloadKind.SINGLE.value,
    )

    # {field: {"from": ..., "to": ...}} for single entries
    changes: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Set from the injected clock, never the database server
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLogEntry {self.action} on {self.entity_type}:{self.entity_id}>"

    @property
    def is_bulk(self) -> bool:
        return self.payload_kind == PayloadKind.BULK_SUMMARY.value

    @property
    def payload(self) -> AuditPayload:
        """Rebuild the tagged payload variant from the stored columns."""
        if self.is_bulk:
            source = self.new_values if self.new_values is not None else self.old_values
            return BulkSummary.from_dict(source or {"bulk_id": self.entity_id})
        return SingleChange(entity_id=self.entity_id, changes=self.changes)
