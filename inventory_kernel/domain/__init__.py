"""Pure domain helpers for the inventory kernel (no ORM, no I/O)."""

from inventory_kernel.domain.actor import SYSTEM_ACTOR, ActorContext
from inventory_kernel.domain.audit_payload import (
    AuditPayload,
    BulkSummary,
    PayloadKind,
    SingleChange,
)
from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "ActorContext",
    "AuditPayload",
    "BulkSummary",
    "Clock",
    "DeterministicClock",
    "PayloadKind",
    "SYSTEM_ACTOR",
    "SingleChange",
    "SystemClock",
]
