"""Unit tests for Settings field validators and derived cache properties."""

import pytest
from pydantic import ValidationError

from settingstore.core.config import Settings

DB_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(**overrides) -> Settings:
    return Settings(SETTINGSTORE_DATABASE_URL=DB_URL, **overrides)


class TestStoreDefaults:
    def test_defaults(self) -> None:
        settings = make_settings()
        assert settings.settings_table_name == "settings"
        assert settings.settings_cache_prefix == "settings"
        assert settings.settings_cache_ttl is None
        assert settings.app_timezone == "UTC"

    def test_empty_table_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            make_settings(SETTINGSTORE_TABLE_NAME="  ")


class TestCacheTtl:
    def test_unset_ttl_caches_forever(self) -> None:
        settings = make_settings()
        assert settings.cache_forever is True
        assert settings.cache_ttl_seconds is None

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_caches_forever(self, ttl: int) -> None:
        settings = make_settings(SETTINGSTORE_CACHE_TTL=ttl)
        assert settings.cache_forever is True
        assert settings.cache_ttl_seconds is None

    def test_positive_ttl_is_minutes(self) -> None:
        settings = make_settings(SETTINGSTORE_CACHE_TTL=15)
        assert settings.cache_forever is False
        assert settings.cache_ttl_seconds == 900


class TestValidateAppTimezone:
    def test_known_zone_accepted(self) -> None:
        assert make_settings(SETTINGSTORE_APP_TIMEZONE="Europe/Paris").app_timezone == "Europe/Paris"

    def test_unknown_zone_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown timezone"):
            make_settings(SETTINGSTORE_APP_TIMEZONE="Mars/Olympus_Mons")


class TestLoggingValidators:
    def test_log_level_upper_cased(self) -> None:
        assert make_settings(SETTINGSTORE_LOG_LEVEL="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Log level must be one of"):
            make_settings(SETTINGSTORE_LOG_LEVEL="chatty")

    def test_invalid_log_format_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Log format must be one of"):
            make_settings(SETTINGSTORE_LOG_FORMAT="xml")

    def test_invalid_environment_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Environment must be one of"):
            make_settings(SETTINGSTORE_ENVIRONMENT="qa")
