"""Structured log lines for asset register events (inventory_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import AssetValidationError, DuplicateAssetCodeError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def log_stream() -> StringIO:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler, level=logging.DEBUG)
    return stream


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestAssetEventPayloads:
    def test_money_date_and_uuid_extras(self, log_stream):
        asset_id = uuid4()
        get_logger("modules.assets.service").info(
            "asset_created",
            extra={
                "asset_id": asset_id,
                "acquisition_date": date(2024, 6, 1),
                "residual_value": Decimal("1000000.00"),
            },
        )
        record = _records(log_stream)[0]
        assert record["logger"] == "inventory_kernel.modules.assets.service"
        assert record["asset_id"] == str(asset_id)
        assert record["acquisition_date"] == "2024-06-01"
        assert record["residual_value"] == "1000000.00"

    def test_conflict_carries_code_kind_and_asset_code(self, log_stream):
        try:
            raise DuplicateAssetCodeError("012.05.2.24.001")
        except DuplicateAssetCodeError:
            get_logger("test").error("asset_conflict", exc_info=True)

        record = _records(log_stream)[0]
        assert record["exc_code"] == "DUPLICATE_ASSET_CODE"
        assert record["exc_kind"] == "conflict"
        assert record["exc_asset_code"] == "012.05.2.24.001"
        assert "traceback" in record

    def test_validation_error_names_field(self, log_stream):
        try:
            raise AssetValidationError("acquisition_price", "must be >= 0")
        except AssetValidationError:
            get_logger("test").warning("asset_rejected", exc_info=True)

        record = _records(log_stream)[0]
        assert record["exc_kind"] == "validation"
        assert record["exc_field"] == "acquisition_price"


class TestRequestContext:
    def test_bound_fields_on_every_line(self, log_stream):
        logger = get_logger("test")
        with LogContext.bind(actor_id="user-001", request_ip="10.0.0.5", bulk_id="b-1"):
            logger.info("bulk_asset_create_started")
            logger.info("bulk_assets_created")
        logger.info("after")

        inside, inside2, after = _records(log_stream)
        for record in (inside, inside2):
            assert record["request_ip"] == "10.0.0.5"
            assert record["bulk_id"] == "b-1"
        assert "request_ip" not in after

    def test_nested_asset_scope_restored(self):
        with LogContext.bind(actor_id="user-001"):
            with LogContext.bind(asset_id="a-1"):
                assert LogContext.get_all() == {"actor_id": "user-001", "asset_id": "a-1"}
            assert LogContext.get_all() == {"actor_id": "user-001"}
        assert LogContext.get_all() == {}

    def test_missing_request_ip_not_bound(self):
        with LogContext.bind(actor_id="system", request_ip=None):
            assert LogContext.get_all() == {"actor_id": "system"}


class TestConfigureLogging:
    def test_second_call_keeps_first_handler(self):
        first = logging.NullHandler()
        second = logging.NullHandler()
        configure_logging(handler=first)
        configure_logging(handler=second)

        handlers = logging.getLogger("inventory_kernel").handlers
        assert first in handlers
        assert second not in handlers
        assert isinstance(first.formatter, StructuredFormatter)
