#!/usr/bin/env python3
"""
Integration tests for configuration module.

Tests environment parsing, validation and the cached global instance.
"""

from pathlib import Path

import pytest

from envelope.core.config import Config, Environment, get_config, get_data_dir, is_test, reload_config
from envelope.core.periods import PeriodType


@pytest.mark.integration
class TestConfigLoading:
    """Test configuration loading and structure."""

    def test_test_environment_defaults(self):
        """Test defaults under the test environment."""
        config = reload_config()

        assert config.environment == Environment.TEST
        assert is_test()
        assert config.budget.period_type == PeriodType.MONTHLY
        assert config.budget.allow_negative_atb is False
        assert config.budget.adjustment_category_id is None
        assert config.budget.currency_symbol == "$"

    def test_data_directories_are_created(self):
        """Test data and audit directories exist after loading."""
        config = reload_config()

        assert isinstance(get_data_dir(), Path)
        assert config.data_dir.is_dir()
        assert config.audit_dir.is_dir()
        assert config.ledger_file == config.data_dir / "ledger.json"

    def test_budget_settings_from_environment(self, monkeypatch):
        """Test budget policy variables are parsed."""
        monkeypatch.setenv("ENVELOPE_PERIOD_TYPE", "Weekly")
        monkeypatch.setenv("ENVELOPE_ALLOW_NEGATIVE_ATB", "yes")
        monkeypatch.setenv("ENVELOPE_ADJUSTMENT_CATEGORY", "misc")

        config = Config.from_environment()

        assert config.budget.period_type == PeriodType.WEEKLY
        assert config.budget.allow_negative_atb is True
        assert config.budget.adjustment_category_id == "misc"

    def test_custom_period_type_is_invalid(self, monkeypatch):
        """Test custom ranges cannot be the default period type."""
        monkeypatch.setenv("ENVELOPE_PERIOD_TYPE", "custom")

        errors = Config.from_environment().validate()

        assert any("ENVELOPE_PERIOD_TYPE" in e for e in errors)

    def test_get_config_raises_on_invalid(self, monkeypatch):
        """Test the cached accessor refuses an invalid configuration."""
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            reload_config()

    def test_get_config_is_cached(self):
        """Test repeated calls return the same instance until reloaded."""
        first = reload_config()
        assert get_config() is first
        assert reload_config() is not first

    def test_to_dict(self):
        """Test the display dictionary."""
        data = reload_config().to_dict()

        assert data["environment"] == "test"
        assert data["budget"]["period_type"] == "monthly"
        assert data["budget"]["allow_negative_atb"] is False
