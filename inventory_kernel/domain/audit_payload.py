"""
Audit payload variants.

An audit entry describes either one entity (``SingleChange``) or a whole
bulk group (``BulkSummary``).  The variant is stored explicitly as the
entry's ``payload_kind`` so readers never have to guess from the shape
of the JSON.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PayloadKind(str, Enum):
    """Discriminator stored on every audit entry."""

    SINGLE = "single"
    BULK_SUMMARY = "bulk_summary"


@dataclass(frozen=True)
class SingleChange:
    """Field-level change set for one entity.  ``changes`` is None when empty."""

    entity_id: str
    changes: dict[str, dict[str, str]] | None = None

    kind = PayloadKind.SINGLE


@dataclass(frozen=True)
class BulkSummary:
    """Value snapshot of every member of a bulk group."""

    bulk_id: str
    bulk_count: int
    assets: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    kind = PayloadKind.BULK_SUMMARY

    def to_dict(self) -> dict[str, Any]:
        return {
            "bulk_id": self.bulk_id,
            "bulk_count": self.bulk_count,
            "assets": [dict(a) for a in self.assets],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BulkSummary":
        assets = tuple(data.get("assets") or ())
        return cls(
            bulk_id=str(data.get("bulk_id", "")),
            bulk_count=int(data.get("bulk_count", len(assets))),
            assets=assets,
        )


AuditPayload = SingleChange | BulkSummary
