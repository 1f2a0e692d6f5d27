"""Shared fixtures for integration tests.

API tests run the full application (middleware, exception handlers, routers)
over the in-memory store, with "today" pinned through the clock dependency.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from revenue.api.main import create_app
from revenue.api.routes.configurations import get_clock
from revenue.core.config import (
    LogConfig,
    ObservabilityConfig,
    RegistryConfig,
    Settings,
)
from tests.fixtures.clock import FixedClock


@pytest.fixture
def memory_settings() -> Settings:
    """Settings for an application backed by the in-memory store."""
    return Settings(
        environment="development",
        log_config=LogConfig(log_formatter_type="console", log_level="WARNING"),
        observability_config=ObservabilityConfig(enable_tracing=False),
        registry_config=RegistryConfig(store_backend="memory"),
    )


@pytest.fixture
def app(memory_settings: Settings, clock: FixedClock) -> FastAPI:
    """Application with a fresh store and a pinned clock."""
    application = create_app(memory_settings)
    application.dependency_overrides[get_clock] = lambda: clock
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client_no_raise(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Client that returns 500 responses instead of re-raising app errors."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
