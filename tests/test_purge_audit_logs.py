"""Retention sweep script tests (scripts/purge_audit_logs.py)."""

import importlib.util
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import select

from inventory_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.models.audit_log import AuditAction, AuditLogEntry
from inventory_kernel.services.auditor_service import AuditDiffEngine

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "purge_audit_logs.py"


@pytest.fixture
def purge_script():
    spec = importlib.util.spec_from_file_location("purge_audit_logs", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def database_url(tmp_path):
    """File-backed SQLite seeded with one old and one recent entry."""
    url = f"sqlite+pysqlite:///{tmp_path / 'assets.db'}"
    init_engine_from_url(url)
    create_tables()

    session = get_session()
    clock = DeterministicClock(datetime(2020, 1, 1, tzinfo=timezone.utc))
    auditor = AuditDiffEngine(session, clock)
    auditor.record("asset", "old", AuditAction.CREATE, new={"name": "x"})
    clock.set_time(datetime.now(timezone.utc))
    auditor.record("asset", "recent", AuditAction.CREATE, new={"name": "y"})
    session.commit()
    session.close()
    reset_engine()

    yield url
    reset_engine()


def _remaining(url: str) -> list[str]:
    init_engine_from_url(url)
    session = get_session()
    try:
        return sorted(session.execute(select(AuditLogEntry.entity_id)).scalars().all())
    finally:
        session.close()
        reset_engine()


def test_purges_old_entries(purge_script, database_url, capsys):
    assert purge_script.main(["--database-url", database_url, "--retention-days", "30"]) == 0

    assert "Deleted 1 audit log entries" in capsys.readouterr().out
    assert _remaining(database_url) == ["recent"]


def test_retention_from_config(purge_script, database_url, tmp_path):
    config = tmp_path / "assets.yaml"
    config.write_text("audit_retention_days: 100000\n")

    assert purge_script.main(["--database-url", database_url, "--config", str(config)]) == 0
    assert _remaining(database_url) == ["old", "recent"]


def test_negative_retention_rejected(purge_script, database_url, capsys):
    assert purge_script.main(["--database-url", database_url, "--retention-days", "-1"]) == 2
    assert "must be >= 0" in capsys.readouterr().err
    assert _remaining(database_url) == ["old", "recent"]
