"""Tests for application settings."""

from inspectflow.core.config import Settings, get_settings


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.app_name == "InspectFlow"
        assert settings.algorithm == "HS256"
        assert settings.session_cookie_name == "inspectflow_session"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("INSPECTFLOW_ACCESS_TOKEN_EXPIRE_MINUTES", "15")
        monkeypatch.setenv("INSPECTFLOW_DEBUG", "true")
        settings = Settings(_env_file=None)
        assert settings.access_token_expire_minutes == 15
        assert settings.debug is True

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test,", _env_file=None)
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()
