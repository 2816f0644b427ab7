"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.auditor_service import (
    AuditDiffEngine,
    AuditPage,
    BulkSummary,
    SingleChange,
)
from inventory_kernel.services.sequence_service import (
    SequenceAllocator,
    SequenceCounter,
    SequenceRange,
)

__all__ = [
    "AuditDiffEngine",
    "AuditPage",
    "BulkSummary",
    "SequenceAllocator",
    "SequenceCounter",
    "SequenceRange",
    "SingleChange",
]
