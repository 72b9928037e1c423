"""
Tests for configuration and the timestamp clock.
"""

import pytest
from pydantic import ValidationError

from paranoia_toolkit.config import ParanoiaConfig, configure, get_config, set_config
from paranoia_toolkit.soft_delete import current_time


class TestParanoiaConfig:
    """Test configuration loading and validation."""

    def test_defaults(self):
        config = ParanoiaConfig()

        assert config.soft_delete_enabled is True
        assert config.timezone == "UTC"
        assert config.purge_after_days == 90

    def test_invalid_timezone(self):
        with pytest.raises(ValidationError) as exc:
            ParanoiaConfig(timezone="Mars/Olympus_Mons")

        assert "Unknown timezone" in str(exc.value)

    def test_purge_after_days_must_be_positive(self):
        with pytest.raises(ValidationError):
            ParanoiaConfig(purge_after_days=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PARANOIA_SOFT_DELETE_ENABLED", "false")
        monkeypatch.setenv("PARANOIA_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("PARANOIA_PURGE_AFTER_DAYS", "30")

        config = ParanoiaConfig.from_env()

        assert config.soft_delete_enabled is False
        assert config.timezone == "Europe/Berlin"
        assert config.purge_after_days == 30

    @pytest.mark.parametrize(
        "raw,expected", [("1", True), ("on", True), ("YES", True), ("0", False)]
    )
    def test_from_env_boolean_spellings(self, monkeypatch, raw, expected):
        monkeypatch.setenv("PARANOIA_SOFT_DELETE_ENABLED", raw)

        assert ParanoiaConfig.from_env().soft_delete_enabled is expected

    def test_from_env_ignores_unprefixed(self, monkeypatch):
        monkeypatch.setenv("TIMEZONE", "Asia/Tokyo")

        assert ParanoiaConfig.from_env().timezone == "UTC"

    def test_from_env_invalid_number(self, monkeypatch):
        monkeypatch.setenv("PARANOIA_PURGE_AFTER_DAYS", "soon")

        with pytest.raises(ValidationError):
            ParanoiaConfig.from_env()

    def test_to_dict(self):
        assert ParanoiaConfig().to_dict() == {
            "soft_delete_enabled": True,
            "timezone": "UTC",
            "purge_after_days": 90,
        }


class TestGlobalConfig:
    """Test the module-level configuration helpers."""

    def test_configure_updates_global(self):
        config = configure(purge_after_days=7)

        assert config.purge_after_days == 7
        assert get_config() is config

    def test_get_config_loads_env(self, monkeypatch):
        monkeypatch.setenv("PARANOIA_TIMEZONE", "Asia/Tokyo")
        set_config(None)

        assert get_config().timezone == "Asia/Tokyo"


class TestCurrentTime:
    """Test the timezone-aware clock."""

    def test_uses_configured_timezone(self):
        configure(timezone="Europe/Berlin")

        now = current_time()

        assert now.tzinfo is not None
        assert now.tzinfo.zone == "Europe/Berlin"

    def test_explicit_config(self):
        now = current_time(ParanoiaConfig(timezone="America/New_York"))

        assert now.tzinfo.zone == "America/New_York"
