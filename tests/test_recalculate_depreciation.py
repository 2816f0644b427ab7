"""Depreciation refresh script tests (scripts/recalculate_depreciation.py)."""

import importlib.util
from datetime import date, datetime, timezone
from decimal import Decimal
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
from inventory_kernel.models.audit_log import AuditLogEntry
from inventory_modules.assets.models import AssetFields
from inventory_modules.assets.orm import AssetModel
from inventory_modules.assets.repository import AssetRepository
from inventory_modules.assets.service import AssetService

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "recalculate_depreciation.py"


@pytest.fixture
def recalculate_script():
    spec = importlib.util.spec_from_file_location("recalculate_depreciation", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def database_url(tmp_path):
    """File-backed SQLite with one depreciating and one non-depreciating asset, written in June 2024."""
    url = f"sqlite+pysqlite:///{tmp_path / 'assets.db'}"
    init_engine_from_url(url)
    create_tables()

    session = get_session()
    category = AssetRepository(session).add_category("05", "Peralatan Kantor")
    session.commit()
    service = AssetService(session, DeterministicClock(datetime(2024, 6, 15, tzinfo=timezone.utc)))
    for name, life in (("Laptop Guru", 4), ("Meja Guru", 0)):
        service.create_asset(
            AssetFields(
                name=name,
                unit="unit",
                acquisition_date=date(2024, 6, 1),
                acquisition_price=Decimal("1200000"),
                category_id=category.id,
                economic_life_years=life,
            )
        )
    session.close()
    reset_engine()

    yield url
    reset_engine()


def _state(url: str) -> tuple[dict[str, Decimal], list[str]]:
    init_engine_from_url(url)
    session = get_session()
    try:
        residuals = {
            m.name: m.residual_value
            for m in session.execute(select(AssetModel)).scalars().all()
        }
        actions = sorted(session.execute(select(AuditLogEntry.action)).scalars().all())
        return residuals, actions
    finally:
        session.close()
        reset_engine()


def test_recalculates_stale_assets(recalculate_script, database_url, capsys):
    residuals, _ = _state(database_url)
    assert residuals["Laptop Guru"] == Decimal("1200000.00")

    assert recalculate_script.main(["--database-url", database_url]) == 0

    assert "Recalculated depreciation for 1 assets" in capsys.readouterr().out
    residuals, actions = _state(database_url)
    assert residuals["Laptop Guru"] < Decimal("1200000.00")
    assert residuals["Meja Guru"] == Decimal("1200000.00")
    assert actions == ["create", "create", "update"]


def test_second_run_is_a_no_op(recalculate_script, database_url, capsys):
    recalculate_script.main(["--database-url", database_url])
    capsys.readouterr()

    assert recalculate_script.main(["--database-url", database_url]) == 0
    assert "Recalculated depreciation for 0 assets" in capsys.readouterr().out
    _, actions = _state(database_url)
    assert actions == ["create", "create", "update"]
