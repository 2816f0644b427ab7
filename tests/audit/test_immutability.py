"""
Append-only persistence tests for the audit trail.

Verifies:
- AuditLogEntry rows cannot be edited through the ORM
- AuditLogEntry rows cannot be deleted through the ORM
- The bulk retention DELETE is the sanctioned removal path
- Registration is idempotent
"""

import pytest
from sqlalchemy import event, func, select

from inventory_kernel.db.immutability import (
    _check_audit_entry_delete,
    _check_audit_entry_immutability,
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.models.audit_log import AuditAction, AuditLogEntry


@pytest.fixture
def entry(session, auditor):
    recorded = auditor.record(
        "asset", "a-1", AuditAction.CREATE,
        new={"name": "Laptop Guru"}, description="Asset created: Laptop Guru",
    )
    session.commit()
    return recorded


class TestAuditEntryImmutability:
    def test_orm_update_rejected(self, session, entry):
        entry.description = "edited"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        session.rollback()

        assert exc_info.value.kind == "conflict"
        assert "immutable" in str(exc_info.value)

    def test_orm_delete_rejected(self, session, entry):
        session.delete(entry)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

        count = session.execute(select(func.count()).select_from(AuditLogEntry)).scalar_one()
        assert count == 1

    def test_retention_sweep_bypasses_mapper_events(self, session, entry, auditor, deterministic_clock):
        deterministic_clock.advance_days(400)

        assert auditor.purge_older_than(30) == 1
        count = session.execute(select(func.count()).select_from(AuditLogEntry)).scalar_one()
        assert count == 0

    def test_unregistered_listeners_permit_update(self, session, entry):
        unregister_immutability_listeners()
        try:
            entry.description = "edited"
            session.flush()
        finally:
            register_immutability_listeners()
        session.rollback()


def test_register_is_idempotent(_immutability_listeners):
    register_immutability_listeners()
    register_immutability_listeners()

    assert event.contains(AuditLogEntry, "before_update", _check_audit_entry_immutability)
    assert event.contains(AuditLogEntry, "before_delete", _check_audit_entry_delete)
