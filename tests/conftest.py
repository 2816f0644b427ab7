"""
Pytest fixtures for the asset register test suite.

Provides:
- A fresh database per test (in-memory SQLite by default)
- Deterministic clock and actor
- Reference data (category, location) and service fixtures

Environment Variables:
- DATABASE_URL: database to run against.  Unset -> in-memory SQLite.
  A PostgreSQL URL runs the same suite against a real server; tables are
  dropped after every test.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from inventory_kernel.db.engine import (
    DEFAULT_DATABASE_URL,
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.domain.actor import ActorContext
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.services.auditor_service import AuditDiffEngine
from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.models import AssetFields
from inventory_modules.assets.repository import AssetRepository
from inventory_modules.assets.service import AssetService


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, asset_service, make_fields):
            asset_service.create_asset(make_fields())
            logs = captured_logs()
            assert any(r["message"] == "asset_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    root.addHandler(handler)
    previous_level = root.level
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture(scope="session")
def _immutability_listeners():
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()


@pytest.fixture
def engine(_immutability_listeners):
    """A freshly created schema for each test."""
    eng = init_engine_from_url(get_database_url())
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    s = get_session()
    yield s
    s.rollback()
    s.close()


# =============================================================================
# Clock / actor fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2025-02-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def actor() -> ActorContext:
    return ActorContext(user_id="user-001", ip_address="10.0.0.5", user_agent="pytest")


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def asset_repository(session) -> AssetRepository:
    return AssetRepository(session)


@pytest.fixture
def category(session, asset_repository):
    """Category with code "05"."""
    cat = asset_repository.add_category("05", "Peralatan Kantor")
    session.commit()
    return cat


@pytest.fixture
def other_category(session, asset_repository):
    cat = asset_repository.add_category("07", "Peralatan Olahraga")
    session.commit()
    return cat


@pytest.fixture
def location(session, asset_repository):
    """Location with code "12"."""
    loc = asset_repository.add_location("12", "Ruang Guru", building="Gedung A")
    session.commit()
    return loc


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def asset_config() -> AssetConfig:
    return AssetConfig.with_defaults()


@pytest.fixture
def asset_service(session, deterministic_clock, asset_config) -> AssetService:
    return AssetService(session, deterministic_clock, asset_config)


@pytest.fixture
def auditor(session, deterministic_clock) -> AuditDiffEngine:
    return AuditDiffEngine(session, deterministic_clock)


@pytest.fixture
def make_fields(category, location):
    """
    Factory for valid ``AssetFields``.

    Defaults: price 1,200,000, life 4 years, acquired 2024-06-01,
    procurement "bantuan", located at code "12", category "05".
    """

    def _make(**overrides) -> AssetFields:
        values = dict(
            name="Laptop Guru",
            unit="unit",
            acquisition_date=date(2024, 6, 1),
            acquisition_price=Decimal("1200000"),
            category_id=category.id,
            location_id=location.id,
            procurement_source="bantuan",
            economic_life_years=4,
        )
        values.update(overrides)
        return AssetFields(**values)

    return _make
