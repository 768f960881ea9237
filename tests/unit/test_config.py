"""Settings loading from the environment."""

from ehub.config import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.environment == "development"
        assert settings.catalog_cache_ttl_seconds == 300
        assert settings.database_url.startswith("postgresql+asyncpg://")

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("EHUB_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("EHUB_CATALOG_CACHE_TTL_SECONDS", "60")
        settings = get_settings()
        assert settings.log_level == "DEBUG"
        assert settings.catalog_cache_ttl_seconds == 60

    def test_unprefixed_ignored(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_settings().log_level == "INFO"

    def test_cached(self):
        assert get_settings() is get_settings()
