"""ORM models owned by the inventory kernel."""

from inventory_kernel.models.audit_log import AuditAction, AuditLogEntry, PayloadKind

__all__ = [
    "AuditAction",
    "AuditLogEntry",
    "PayloadKind",
]
