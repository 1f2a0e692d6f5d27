"""Async engine and session lifecycle for the PostgreSQL store.

A single engine (and its connection pool) is created lazily per process by
``_DatabaseManager``. Each request gets its own ``AsyncSession`` from
``get_async_session``, committed when the request succeeds and rolled back
when it raises, which also releases any advisory locks the store took.

When ``log_config.enable_sql_logging`` is set, cursor events time every
statement and slow ones are logged with sanitized parameters.
"""

import threading
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from weakref import WeakKeyDictionary

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.engine.interfaces import DBAPICursor, ExecutionContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from revenue.core.config import get_settings
from revenue.core.constants import MAX_LOGGED_STATEMENT_LENGTH, MILLISECONDS_PER_SECOND
from revenue.core.error_context import sanitize_sql_params
from revenue.infrastructure.constants import (
    COMMAND_TIMEOUT_SECONDS,
    POOL_RECYCLE_SECONDS,
)

type SqlParameters = dict[str, Any] | list[Any] | tuple[Any, ...] | None

_query_start_times: WeakKeyDictionary[ExecutionContext, float] = WeakKeyDictionary()


def _before_cursor_execute(
    _conn: Connection,
    _cursor: DBAPICursor,
    _statement: str,
    _parameters: SqlParameters,
    context: ExecutionContext,
    _executemany: bool,
) -> None:
    """Remember when the statement started."""
    _query_start_times[context] = time.perf_counter()


def _after_cursor_execute(
    _conn: Connection,
    cursor: DBAPICursor,
    statement: str,
    parameters: SqlParameters,
    context: ExecutionContext,
    executemany: bool,
) -> None:
    """Warn about statements slower than the configured threshold."""
    start_time = _query_start_times.pop(context, None)
    if start_time is None:
        return

    elapsed = time.perf_counter() - start_time
    duration_ms = round(elapsed * MILLISECONDS_PER_SECOND, 2)
    threshold_ms = get_settings().log_config.slow_query_threshold_ms
    if duration_ms < threshold_ms:
        return

    clean_statement = " ".join(statement.split())[:MAX_LOGGED_STATEMENT_LENGTH]
    rows_affected = getattr(cursor, "rowcount", None)
    logger.warning(
        "Slow query detected: {:.2f}ms",
        duration_ms,
        query=clean_statement,
        duration_ms=duration_ms,
        rows_affected=-1 if rows_affected is None else rows_affected,
        parameters=sanitize_sql_params(parameters),
        executemany=executemany,
        threshold_ms=threshold_ms,
    )


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine with the configured pool.

    Args:
        database_url: Overrides ``database_config.database_url`` (tests use
            this to point at the test database).

    Returns:
        AsyncEngine: Configured async engine instance.
    """
    settings = get_settings()
    db_config = settings.database_config

    engine = create_async_engine(
        database_url or db_config.database_url,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=db_config.pool_pre_ping,
        echo=db_config.echo,
        pool_recycle=POOL_RECYCLE_SECONDS,
        connect_args={
            # Predictable plans for the short interval queries
            "server_settings": {"jit": "off"},
            "command_timeout": COMMAND_TIMEOUT_SECONDS,
        },
    )

    if settings.log_config.enable_sql_logging:
        # Cursor events are sync events, so they hang off the sync engine
        sync_engine = engine.sync_engine
        event.listen(sync_engine, "before_cursor_execute", _before_cursor_execute)
        event.listen(sync_engine, "after_cursor_execute", _after_cursor_execute)

    logger.info(
        "Created database engine - pool_size: {}, max_overflow: {}, sql_logging: {}",
        db_config.pool_size,
        db_config.max_overflow,
        settings.log_config.enable_sql_logging,
    )
    return engine


class _DatabaseManager:
    """Holds the process-wide engine and session factory."""

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock = threading.Lock()

    def get_engine(self) -> AsyncEngine:
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    self._engine = create_database_engine()
        return self._engine

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            engine = self.get_engine()
            with self._lock:
                if self._session_factory is None:
                    self._session_factory = async_sessionmaker(
                        engine, class_=AsyncSession, expire_on_commit=False
                    )
        return self._session_factory

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
        self.reset()

    def reset(self) -> None:
        """Forget the engine without disposing it. Used by tests."""
        self._engine = None
        self._session_factory = None


_db_manager = _DatabaseManager()


def get_engine() -> AsyncEngine:
    """Get or create the process-wide async engine."""
    return _db_manager.get_engine()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the process-wide session factory."""
    return _db_manager.get_session_factory()


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Open a session that commits on success and rolls back on error.

    Yields:
        AsyncGenerator[AsyncSession]: Session for one unit of work.

    Example:
        async with get_async_session() as session:
            store = SqlConfigurationStore(session)
            rows = await store.scan(RPT_TAX)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.debug("Database session rolled back due to error")
            raise


async def close_database() -> None:
    """Dispose of the engine; called on application shutdown."""
    await _db_manager.close()


async def check_database_connection() -> tuple[bool, str | None]:
    """Run ``SELECT 1`` against the database.

    Returns:
        tuple[bool, str | None]: Whether the database answered, and the
            error message when it did not.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        return False, str(e)
    return True, None
