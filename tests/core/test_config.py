import logging

import pytest
from pydantic import ValidationError

from src.core.config import Settings
from src.core.logging import configure_logging


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.pricing_table_path is None
        assert settings.strict_pricing is False
        assert settings.include_materials_in_history is False
        assert settings.history_months == 12
        assert settings.is_production is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRICT_PRICING", "true")
        monkeypatch.setenv("HISTORY_MONTHS", "6")
        monkeypatch.setenv("APP_ENV", "production")
        settings = Settings(_env_file=None)
        assert settings.strict_pricing is True
        assert settings.history_months == 6
        assert settings.is_production is True

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_history_months_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, history_months=0)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_uses_configured_level(self):
        configure_logging(Settings(_env_file=None, debug=False, log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_debug_in_development(self):
        configure_logging(Settings(_env_file=None, debug=True, log_level="INFO"))
        assert logging.getLogger().level == logging.DEBUG

    def test_production_ignores_debug_flag(self):
        configure_logging(
            Settings(_env_file=None, app_env="production", debug=True, log_level="ERROR")
        )
        assert logging.getLogger().level == logging.ERROR
