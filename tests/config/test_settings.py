"""
Tests for settings loading: packaged defaults, file overrides and
WAREHOUSE_* environment overrides.
"""

from decimal import Decimal

import pytest

from warehouse_config import get_active_config
from warehouse_config.loader import compute_checksum, deep_merge, load_settings_mapping
from warehouse_kernel.domain.dtos import IssuePolicy
from warehouse_modules.inventory.config import InventoryConfig


class TestDefaults:
    def test_packaged_defaults(self):
        settings = get_active_config(environ={})

        assert settings.database.url == "sqlite:///warehouse.db"
        assert settings.logging.level == "INFO"
        assert settings.inventory.issue_policy is IssuePolicy.FIFO
        assert settings.inventory.min_unit_price == Decimal("0.01")
        assert settings.inventory.default_unit == "unit"
        assert settings.inventory.stock_in_default_note == "-"

    def test_checksum_is_stable(self):
        first = load_settings_mapping(environ={})
        second = load_settings_mapping(environ={})

        assert compute_checksum(first) == compute_checksum(second)


class TestOverrides:
    def test_file_overrides_merge_over_defaults(self, tmp_path):
        path = tmp_path / "site.yaml"
        path.write_text(
            "inventory:\n"
            "  issue_method: fefo\n"
            "database:\n"
            "  url: sqlite:///site.db\n"
        )

        settings = get_active_config(path, environ={})

        assert settings.inventory.issue_policy is IssuePolicy.FEFO
        assert settings.inventory.default_unit == "unit"
        assert settings.database.url == "sqlite:///site.db"
        assert settings.database.pool_size == 20

    def test_environment_beats_file(self, tmp_path):
        path = tmp_path / "site.yaml"
        path.write_text("logging:\n  level: DEBUG\n")

        settings = get_active_config(
            path,
            environ={
                "WAREHOUSE_LOG_LEVEL": "WARNING",
                "WAREHOUSE_DATABASE_URL": "sqlite://",
                "WAREHOUSE_ISSUE_METHOD": "fefo",
            },
        )

        assert settings.logging.level == "WARNING"
        assert settings.database.url == "sqlite://"
        assert settings.inventory.issue_method == "fefo"

    def test_deep_merge_keeps_sibling_keys(self):
        merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})

        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}


class TestValidation:
    def test_invalid_issue_method(self):
        with pytest.raises(ValueError, match="issue_method"):
            InventoryConfig(issue_method="lifo")

    def test_non_positive_minimum_price(self):
        with pytest.raises(ValueError, match="min_unit_price"):
            InventoryConfig(min_unit_price=Decimal("0"))

    def test_unknown_section(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("ledger:\n  enabled: true\n")

        with pytest.raises(ValueError, match="Unknown settings sections"):
            get_active_config(path, environ={})

    def test_unknown_inventory_key(self):
        with pytest.raises(ValueError, match="Unknown inventory settings"):
            InventoryConfig.from_dict({"costing": "lifo"})

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="logging.level"):
            get_active_config(environ={"WAREHOUSE_LOG_LEVEL": "LOUD"})

    def test_missing_settings_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml", environ={})

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ValueError, match="mapping"):
            get_active_config(path, environ={})
