"""Tests for configuration validation"""
import pytest

from ruang_tenang import config


class TestConfigValidation:
    """Test validate_config() against module-level settings"""

    def test_defaults_are_valid(self):
        config.validate_config()

    def test_default_activity_timezone(self):
        assert config.ACTIVITY_TIMEZONE == "Asia/Jakarta"

    def test_missing_database_url(self, monkeypatch):
        monkeypatch.setattr(config, "DATABASE_URL", "")

        with pytest.raises(ValueError, match="DATABASE_URL is required"):
            config.validate_config()

    def test_unknown_timezone(self, monkeypatch):
        monkeypatch.setattr(config, "ACTIVITY_TIMEZONE", "Nowhere/Special")

        with pytest.raises(ValueError, match="not a known timezone"):
            config.validate_config()

    def test_pool_sizes(self, monkeypatch):
        monkeypatch.setattr(config, "DB_POOL_MIN_SIZE", 5)
        monkeypatch.setattr(config, "DB_POOL_MAX_SIZE", 2)

        with pytest.raises(ValueError, match="DB_POOL_MAX_SIZE"):
            config.validate_config()

    def test_negative_retries(self, monkeypatch):
        monkeypatch.setattr(config, "AWARD_MAX_RETRIES", -1)

        with pytest.raises(ValueError, match="AWARD_MAX_RETRIES"):
            config.validate_config()
