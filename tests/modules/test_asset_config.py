"""AssetConfig defaults and loading."""

import pytest

from inventory_modules.assets.config import AssetConfig


class TestDefaults:
    def test_stock_layout(self):
        config = AssetConfig.with_defaults()
        assert config.default_location_code == "001"
        assert config.default_category_code == "10"
        assert config.procurement_codes["produksi_sendiri"] == "5"
        assert config.fallback_code_prefix == "AST-"
        assert config.audit_retention_days == 90

    def test_instances_do_not_share_procurement_codes(self):
        a = AssetConfig()
        a.procurement_codes["warisan"] = "6"
        assert "warisan" not in AssetConfig().procurement_codes


class TestBulkEligibility:
    @pytest.mark.parametrize("unit", ["unit", "PCS", " Set ", "buah"])
    def test_eligible(self, unit):
        assert AssetConfig().is_bulk_eligible(unit)

    @pytest.mark.parametrize("unit", ["kg", "liter", "", None])
    def test_not_eligible(self, unit):
        assert not AssetConfig().is_bulk_eligible(unit)

    def test_configured_units_lowercased(self):
        config = AssetConfig(bulk_eligible_units=("Lembar",))
        assert config.bulk_eligible_units == ("lembar",)
        assert config.is_bulk_eligible("LEMBAR")


class TestLoading:
    def test_from_dict(self):
        config = AssetConfig.from_dict({
            "default_location_code": "900",
            "procurement_codes": {"pembelian": 7},
            "bulk_eligible_units": ["Rim"],
        })
        assert config.default_location_code == "900"
        assert config.procurement_codes == {"pembelian": "7"}
        assert config.bulk_eligible_units == ("rim",)

    def test_from_dict_unknown_key(self):
        with pytest.raises(TypeError):
            AssetConfig.from_dict({"currency": "IDR"})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "assets.yaml"
        path.write_text(
            "fallback_code_prefix: INV-\n"
            "audit_retention_days: 30\n"
            "bulk_eligible_units:\n"
            "  - unit\n"
            "  - Box\n"
        )
        config = AssetConfig.from_yaml(path)
        assert config.fallback_code_prefix == "INV-"
        assert config.audit_retention_days == 30
        assert config.bulk_eligible_units == ("unit", "box")

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert AssetConfig.from_yaml(path) == AssetConfig()

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AssetConfig.from_yaml(tmp_path / "nope.yaml")


class TestDisplayFormat:
    def test_carries_presentation_settings(self):
        display = AssetConfig(currency_prefix="IDR ", long_text_limit=12).display_format()
        assert display.currency_prefix == "IDR "
        assert display.long_text_limit == 12

    def test_default_prefix_matches_indonesian_locale(self):
        assert AssetConfig().display_format().currency_prefix == "Rp\u00a0"
