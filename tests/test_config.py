"""
Tests for configuration loading and validation
"""

import pytest
from pydantic import ValidationError

from src.config import AppConfig, get_config, reload_config


class TestAppConfig:
    """Tests for AppConfig"""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is configured"""
        for name in ("DATABASE_URL", "FREE_TIER_LIMIT", "LOG_LEVEL", "CONFLICT_RETRIES"):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig(_env_file=None)

        assert config.database_url == "sqlite:///notemore.db"
        assert config.free_tier_limit == 5
        assert config.conflict_retries == 3
        assert config.log_level == "INFO"
        assert config.is_sqlite is True

    def test_reads_environment(self, monkeypatch):
        """Test values are read from environment variables"""
        monkeypatch.setenv("FREE_TIER_LIMIT", "10")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/notemore")

        config = AppConfig(_env_file=None)

        assert config.free_tier_limit == 10
        assert config.is_sqlite is False

    def test_log_level_normalised(self):
        """Test log level names are upper-cased"""
        assert AppConfig(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test unknown log level is rejected"""
        with pytest.raises(ValidationError):
            AppConfig(_env_file=None, log_level="chatty")

    @pytest.mark.parametrize("limit", [0, 1001])
    def test_free_tier_limit_bounds(self, limit):
        """Test free tier limit must be between 1 and 1000"""
        with pytest.raises(ValidationError):
            AppConfig(_env_file=None, free_tier_limit=limit)

    def test_reload_config(self, monkeypatch):
        """Test reload_config picks up new environment values"""
        monkeypatch.setenv("CONFLICT_RETRIES", "7")
        try:
            assert reload_config().conflict_retries == 7
            assert get_config().conflict_retries == 7
        finally:
            monkeypatch.delenv("CONFLICT_RETRIES")
            reload_config()
