"""
Asset Register Configuration Schema.

Defines the structure and defaults for asset code formatting, bulk
provisioning, audit retention and change-set display.  Values can be
overridden from a dictionary or a YAML file at startup.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

import yaml

from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.auditor_service import DisplayFormat
from inventory_modules.assets.models import ProcurementSource

logger = get_logger("modules.assets.config")

DEFAULT_PROCUREMENT_CODES: dict[str, str] = {
    ProcurementSource.PURCHASE.value: "1",
    ProcurementSource.ASSISTANCE.value: "2",
    ProcurementSource.GRANT.value: "3",
    ProcurementSource.DONATION.value: "4",
    ProcurementSource.SELF_PRODUCED.value: "5",
}

DEFAULT_BULK_ELIGIBLE_UNITS: tuple[str, ...] = ("unit", "pcs", "set", "buah")


@dataclass
class AssetConfig:
    """
    Configuration schema for the asset register.

    Override at instantiation or load from file:

        config = AssetConfig.from_yaml("config/assets.yaml")
    """

    # Code segments
    default_location_code: str = "001"
    default_category_code: str = "10"
    location_code_width: int = 3
    category_code_width: int = 2
    sequence_width: int = 3
    default_procurement_code: str = "1"
    procurement_codes: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PROCUREMENT_CODES)
    )
    fallback_code_prefix: str = "AST-"
    max_code_length: int = 50

    # Bulk provisioning
    bulk_eligible_units: tuple[str, ...] = DEFAULT_BULK_ELIGIBLE_UNITS

    # Audit
    audit_retention_days: int = 90
    currency_prefix: str = "Rp\u00a0"
    long_text_limit: int = 30

    def __post_init__(self):
        self.bulk_eligible_units = tuple(u.lower() for u in self.bulk_eligible_units)
        logger.info(
            "asset_config_initialized",
            extra={
                "default_location_code": self.default_location_code,
                "default_category_code": self.default_category_code,
                "fallback_code_prefix": self.fallback_code_prefix,
                "bulk_eligible_units": list(self.bulk_eligible_units),
                "audit_retention_days": self.audit_retention_days,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the stock code layout."""
        logger.info("asset_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary (e.g., loaded from database/file)."""
        logger.info(
            "asset_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "bulk_eligible_units" in data:
            data["bulk_eligible_units"] = tuple(data["bulk_eligible_units"])
        if "procurement_codes" in data:
            data["procurement_codes"] = {
                str(k): str(v) for k, v in data["procurement_codes"].items()
            }
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """
        Load config from a YAML mapping.

        Raises:
            FileNotFoundError: if the file does not exist.
            yaml.YAMLError: if the file contains invalid YAML.
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        logger.info("asset_config_loaded_from_yaml", extra={"path": str(path)})
        return cls.from_dict(data)

    def display_format(self) -> DisplayFormat:
        return DisplayFormat(
            currency_prefix=self.currency_prefix,
            long_text_limit=self.long_text_limit,
        )

    def is_bulk_eligible(self, unit: str | None) -> bool:
        if not unit:
            return False
        return unit.strip().lower() in self.bulk_eligible_units
