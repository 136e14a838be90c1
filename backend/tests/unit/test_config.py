"""Unit tests for environment-based settings."""

import pytest
from pydantic import ValidationError

from precheckin.config import Settings, get_settings, reset_settings
from precheckin.models import DateStyle

VARIABLES = [name.upper() for name in Settings.model_fields]


@pytest.fixture
def clean_env(monkeypatch):
    """Environment with none of the service variables set."""
    for name in VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def load() -> Settings:
    return Settings(_env_file=None)


class TestSettings:
    """Tests for reading Settings from the environment."""

    def test_defaults(self, clean_env):
        settings = load()

        assert settings.resend_api_key is None
        assert settings.rate_limit_max == 10
        assert settings.rate_limit_window_seconds == 3600
        assert settings.max_guests == 5
        assert settings.alloggiati_date_style == DateStyle.LONG
        assert settings.gies_enabled is True
        assert settings.cors_allow_origins == ["http://localhost:3000", "http://127.0.0.1:3000"]

    def test_reads_upper_case_variables(self, clean_env):
        clean_env.setenv("RESEND_API_KEY", "re_123")
        clean_env.setenv("RATE_LIMIT_MAX", "3")
        clean_env.setenv("ALLOGGIATI_DATE_STYLE", "short")
        clean_env.setenv("GIES_ENABLED", "false")

        settings = load()

        assert settings.resend_api_key == "re_123"
        assert settings.rate_limit_max == 3
        assert settings.alloggiati_date_style == DateStyle.SHORT
        assert settings.gies_enabled is False

    def test_empty_values_keep_defaults(self, clean_env):
        clean_env.setenv("RESEND_API_KEY", "")
        clean_env.setenv("MAX_GUESTS", "")

        settings = load()

        assert settings.resend_api_key is None
        assert settings.max_guests == 5

    def test_structure_codes_from_json(self, clean_env):
        clean_env.setenv("STRUCTURE_CODES", '{"Loft": "VE0042"}')
        assert load().structure_codes == {"Loft": "VE0042"}

    def test_cors_origins_from_comma_list(self, clean_env):
        clean_env.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
        assert load().cors_allow_origins == ["https://a.example", "https://b.example"]

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RATE_LIMIT_MAX=4\nEMAIL_TO=host@example.com\n", encoding="utf-8")

        settings = Settings(_env_file=env_file)

        assert settings.rate_limit_max == 4
        assert settings.email_to == "host@example.com"

    def test_environment_wins_over_dotenv(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RATE_LIMIT_MAX=4\n", encoding="utf-8")
        clean_env.setenv("RATE_LIMIT_MAX", "8")

        assert Settings(_env_file=env_file).rate_limit_max == 8

    def test_settings_are_frozen(self, clean_env):
        settings = load()
        with pytest.raises(ValidationError):
            settings.max_guests = 9

    @pytest.mark.parametrize(
        "name,value",
        [("RATE_LIMIT_MAX", "0"), ("RATE_LIMIT_BACKEND", "redis"), ("MAX_GUESTS", "many")],
    )
    def test_invalid_values_raise(self, clean_env, name, value):
        clean_env.setenv(name, value)
        with pytest.raises(ValidationError):
            load()


class TestGetSettings:
    """Tests for the cached accessor."""

    def test_is_cached_until_reset(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("RATE_LIMIT_MAX", "7")

        assert get_settings() is first

        reset_settings()
        assert get_settings().rate_limit_max == 7
