"""FastAPI dependency that provides the configured configuration store.

With the ``database`` backend every request gets a ``SqlConfigurationStore``
over its own session: committed when the route returns, rolled back when it
raises. The ``memory`` backend hands out the process-wide store created at
startup.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request

from revenue.core.config import Settings
from revenue.domain.registry.store import ConfigurationStore
from revenue.infrastructure.database.session import get_async_session
from revenue.infrastructure.database.store import SqlConfigurationStore
from revenue.infrastructure.memory_store import InMemoryConfigurationStore


def create_memory_store(settings: Settings) -> InMemoryConfigurationStore:
    """Build the process-wide store used by the ``memory`` backend."""
    return InMemoryConfigurationStore(
        timeout=settings.registry_config.store_timeout_seconds
    )


async def get_configuration_store(
    request: Request,
) -> AsyncGenerator[ConfigurationStore]:
    """Yield the store for one request.

    Yields:
        AsyncGenerator[ConfigurationStore]: Store scoped to the request.
    """
    settings: Settings = request.app.state.settings
    registry_config = settings.registry_config
    if registry_config.store_backend == "memory":
        yield request.app.state.memory_store
        return

    async with get_async_session() as session:
        yield SqlConfigurationStore(
            session, timeout=registry_config.store_timeout_seconds
        )


ConfigurationStoreDep = Annotated[
    ConfigurationStore, Depends(get_configuration_store)
]
