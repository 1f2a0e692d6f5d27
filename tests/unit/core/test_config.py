"""Unit tests for revenue/core/config.py."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from revenue.core.config import (
    DatabaseConfig,
    RegistryConfig,
    Settings,
    get_settings,
)


@pytest.mark.unit
class TestRegistryConfig:
    """Test registry settings."""

    def test_defaults(self) -> None:
        """Test the default backend, timeout and timezone."""
        config = RegistryConfig()

        assert config.store_backend == "database"
        assert config.store_timeout_seconds == 5.0
        assert config.timezone == "Asia/Manila"

    def test_unknown_timezone_is_rejected(self) -> None:
        """Test that a typo in the timezone fails at startup."""
        with pytest.raises(PydanticValidationError, match="Unknown timezone"):
            RegistryConfig(timezone="Asia/Manilla")

    def test_timeout_must_be_positive(self) -> None:
        """Test the timeout bounds."""
        with pytest.raises(PydanticValidationError):
            RegistryConfig(store_timeout_seconds=0)

    def test_nested_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the __ delimiter for nested sections."""
        monkeypatch.setenv("REGISTRY_CONFIG__STORE_BACKEND", "memory")
        monkeypatch.setenv("REGISTRY_CONFIG__TIMEZONE", "UTC")

        settings = Settings()

        assert settings.registry_config.store_backend == "memory"
        assert settings.registry_config.timezone == "UTC"


@pytest.mark.unit
class TestSettings:
    """Test application settings."""

    def test_production_defaults(self) -> None:
        """Test that production switches to OTLP with sampling."""
        settings = Settings(environment="production")

        assert settings.observability_config.exporter_type == "otlp"
        assert settings.observability_config.trace_sample_rate == 0.1
        assert settings.log_config.log_formatter_type == "json"

    def test_development_uses_console_logs(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test formatter auto-detection outside containers."""
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        monkeypatch.delenv("K_SERVICE", raising=False)

        settings = Settings(environment="development")

        assert settings.log_config.log_formatter_type == "console"

    def test_empty_docs_url_disables_docs(self) -> None:
        """Test that an empty string becomes None."""
        assert Settings(docs_url="").docs_url is None

    def test_get_settings_is_cached(self) -> None:
        """Test that settings are built once."""
        assert get_settings() is get_settings()


@pytest.mark.unit
class TestDatabaseConfig:
    """Test database settings."""

    def test_requires_asyncpg_driver(self) -> None:
        """Test that a sync driver URL is rejected."""
        with pytest.raises(PydanticValidationError):
            DatabaseConfig(database_url="postgresql://u:p@localhost/db")
