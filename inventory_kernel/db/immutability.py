"""
ORM-Level Immutability Enforcement for the audit trail.

===============================================================================
WHY THIS EXISTS
===============================================================================

Audit log entries record who changed which asset field and when.  Once an
entry is written it must never be edited or removed through application
code, otherwise the activity history can no longer be trusted.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_audit_entry_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_audit_entry_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When Immutable          | Why
----------------|-------------------------|-----------------------------------
AuditLogEntry   | ALWAYS (from creation)  | Activity history is append-only

The retention sweep (AuditDiffEngine.purge_older_than) removes old rows with
a bulk SQL DELETE, which does not load instances and therefore does not fire
mapper events.  That is the only sanctioned removal path.

===============================================================================
USAGE
===============================================================================

Called once at application startup (and by the test fixtures):

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    from inventory_kernel.db.immutability import unregister_immutability_listeners
    unregister_immutability_listeners()
"""

from sqlalchemy import event

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_audit_entry_immutability(mapper, connection, target):
    """Prevent any updates to AuditLogEntry records."""
    from inventory_kernel.models.audit_log import AuditLogEntry

    if not isinstance(target, AuditLogEntry):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditLogEntry",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditLogEntry",
        entity_id=str(target.id),
        reason="Audit log entries are immutable and cannot be modified",
    )


def _check_audit_entry_delete(mapper, connection, target):
    """Prevent deletion of AuditLogEntry records through the ORM."""
    from inventory_kernel.models.audit_log import AuditLogEntry

    if not isinstance(target, AuditLogEntry):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditLogEntry",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditLogEntry",
        entity_id=str(target.id),
        reason="Audit log entries cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register immutability enforcement event listeners.

    Idempotent: listeners already registered are left alone.
    """
    from inventory_kernel.models.audit_log import AuditLogEntry

    if not event.contains(AuditLogEntry, "before_update", _check_audit_entry_immutability):
        event.listen(AuditLogEntry, "before_update", _check_audit_entry_immutability)
    if not event.contains(AuditLogEntry, "before_delete", _check_audit_entry_delete):
        event.listen(AuditLogEntry, "before_delete", _check_audit_entry_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from inventory_kernel.models.audit_log import AuditLogEntry

    _safe_remove_listener(AuditLogEntry, "before_update", _check_audit_entry_immutability)
    _safe_remove_listener(AuditLogEntry, "before_delete", _check_audit_entry_delete)
