"""Root conftest.py for the revenue registry test suite.

Project-wide fixtures: a controllable clock, an in-memory store, engines per
kind and a log capture for asserting on Loguru output.
"""

from collections.abc import Callable, Generator
from datetime import date

import pytest
from loguru import logger
from pytest_mock import MockerFixture, MockType

from revenue.core.config import LogConfig, Settings, get_settings
from revenue.core.context import RequestContext
from revenue.core.error_context import _get_sensitive_fields
from revenue.domain.registry import ConfigurationKind, RegistryEngine
from revenue.infrastructure.memory_store import InMemoryConfigurationStore
from tests.fixtures.clock import TODAY, FixedClock


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Start every test with fresh settings."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Clear correlation and request ids around each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-06-15."""
    return FixedClock(TODAY)


@pytest.fixture
def memory_store() -> InMemoryConfigurationStore:
    """Empty in-memory store."""
    return InMemoryConfigurationStore(timeout=1.0)


@pytest.fixture
def make_engine(
    memory_store: InMemoryConfigurationStore, clock: FixedClock
) -> Callable[[ConfigurationKind], RegistryEngine]:
    """Factory for engines sharing the test store and clock."""

    def _make(kind: ConfigurationKind) -> RegistryEngine:
        return RegistryEngine(kind, memory_store, clock=clock)

    return _make


@pytest.fixture
def log_messages() -> Generator[list[str]]:
    """Collect Loguru messages (``LEVEL message``) written during the test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.rstrip("\n")),
        format="{level} {message}",
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def mock_get_settings(mocker: MockerFixture) -> MockType:
    """Patch the settings seen by error_context with extra sensitive names."""
    settings = mocker.Mock(spec=Settings)
    settings.log_config = mocker.Mock(spec=LogConfig)
    settings.log_config.sensitive_fields = ["custom_secret", "api_token"]

    mock = mocker.patch("revenue.core.error_context.get_settings")
    mock.return_value = settings
    _get_sensitive_fields.cache_clear()
    return mock
