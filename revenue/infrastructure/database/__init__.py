"""PostgreSQL persistence for the configuration registry.

Core components:
- **base**: Declarative base and the shared configuration columns
- **models**: One ORM model per configuration kind
- **session**: Async engine and per-request session lifecycle
- **repository**: Generic CRUD and interval queries
- **store**: ``ConfigurationStore`` implementation with advisory locks
"""

from revenue.infrastructure.database.base import Base, BaseModel, ConfigurationModel
from revenue.infrastructure.database.models import CONFIGURATION_MODELS
from revenue.infrastructure.database.repository import ConfigurationRepository
from revenue.infrastructure.database.session import (
    check_database_connection,
    close_database,
    create_database_engine,
    get_async_session,
    get_engine,
    get_session_factory,
)
from revenue.infrastructure.database.store import SqlConfigurationStore

__all__ = [
    "CONFIGURATION_MODELS",
    "Base",
    "BaseModel",
    "ConfigurationModel",
    "ConfigurationRepository",
    "SqlConfigurationStore",
    "check_database_connection",
    "close_database",
    "create_database_engine",
    "get_async_session",
    "get_engine",
    "get_session_factory",
]
