"""PostgreSQL configuration store.

One ``SqlConfigurationStore`` wraps the session of a single request, so all
of its writes share one transaction. Guarded writes first take a
transaction-scoped advisory lock derived from the kind and the natural key;
concurrent writers of the same natural key therefore check and write one at
a time, and the lock is released when the request transaction ends.
"""

from __future__ import annotations

import asyncio
import hashlib
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import DataError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from revenue.core.exceptions import StoreUnavailableError, ValidationError
from revenue.domain.registry.store import RecordFilter
from revenue.infrastructure.database.models import CONFIGURATION_MODELS
from revenue.infrastructure.database.repository import ConfigurationRepository

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

    from revenue.core.types import RecordValues
    from revenue.domain.registry.kinds import ConfigurationKind
    from revenue.domain.registry.store import WriteGuard
    from revenue.infrastructure.database.base import ConfigurationModel

_ADVISORY_LOCK = text("SELECT pg_advisory_xact_lock(:key)")

_UNAVAILABLE = (OperationalError, InterfaceError, PoolTimeoutError, OSError)


def advisory_lock_key(kind: ConfigurationKind, natural_key: Mapping[str, Any]) -> int:
    """Stable signed 64-bit lock id for one natural key of one kind.

    Decimals are normalized so ``0`` and ``0.00`` map to the same lock.
    """
    parts = [kind.name]
    for name in kind.natural_key:
        value = natural_key.get(name)
        if isinstance(value, Decimal):
            value = value.normalize()
        parts.append(f"{name}={value}")
    digest = hashlib.blake2b("|".join(parts).encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def to_row(kind: ConfigurationKind, instance: ConfigurationModel) -> RecordValues:
    """Copy the columns the registry knows about into a plain row."""
    row: RecordValues = {"id": instance.id}
    for column in kind.columns:
        row[column] = getattr(instance, column)
    if kind.persists_status:
        row["status"] = getattr(instance, "status", None)
    return row


class SqlConfigurationStore:
    """``ConfigurationStore`` backed by one table per kind.

    Args:
        session: Request-scoped session; the caller commits or rolls back.
        timeout: Seconds any single store call may take.
    """

    def __init__(self, session: AsyncSession, timeout: float = 5.0) -> None:
        self.session = session
        self.timeout = timeout

    def _repository(
        self, kind: ConfigurationKind
    ) -> ConfigurationRepository[ConfigurationModel]:
        return ConfigurationRepository(self.session, CONFIGURATION_MODELS[kind.name])

    @asynccontextmanager
    async def _bounded(
        self, operation: str, kind: ConfigurationKind
    ) -> AsyncIterator[None]:
        """Apply the store timeout and translate database failures."""
        try:
            async with asyncio.timeout(self.timeout):
                yield
        except TimeoutError as e:
            logger.error(
                "Store {} on {} exceeded {}s", operation, kind.table, self.timeout
            )
            msg = f"Configuration store timed out during {operation}"
            raise StoreUnavailableError(
                msg, context={"kind": kind.name, "operation": operation}, cause=e
            ) from e
        except _UNAVAILABLE as e:
            logger.error(
                "Store {} on {} failed: {}", operation, kind.table, type(e).__name__
            )
            msg = f"Configuration store unavailable during {operation}"
            raise StoreUnavailableError(
                msg, context={"kind": kind.name, "operation": operation}, cause=e
            ) from e
        except DataError as e:
            logger.warning(
                "Store {} on {} rejected a value: {}", operation, kind.table, e.orig
            )
            msg = f"Value does not fit the {kind.label} columns"
            raise ValidationError(
                msg, context={"kind": kind.name, "operation": operation}, cause=e
            ) from e

    async def _check_guard(
        self,
        kind: ConfigurationKind,
        repo: ConfigurationRepository[ConfigurationModel],
        guard: WriteGuard,
    ) -> None:
        key = advisory_lock_key(kind, guard.natural_key)
        await self.session.execute(_ADVISORY_LOCK, {"key": key})
        siblings = await repo.scan(match=guard.natural_key)
        guard.check([to_row(kind, instance) for instance in siblings])

    async def get(self, kind: ConfigurationKind, record_id: int) -> RecordValues | None:
        async with self._bounded("get", kind):
            instance = await self._repository(kind).get_by_id(record_id)
        return to_row(kind, instance) if instance is not None else None

    async def scan(
        self, kind: ConfigurationKind, where: RecordFilter | None = None
    ) -> list[RecordValues]:
        where = where or RecordFilter()
        async with self._bounded("scan", kind):
            instances = await self._repository(kind).scan(where.as_of, where.match)
        return [to_row(kind, instance) for instance in instances]

    async def insert(
        self,
        kind: ConfigurationKind,
        values: RecordValues,
        guard: WriteGuard | None = None,
    ) -> RecordValues:
        async with self._bounded("insert", kind):
            repo = self._repository(kind)
            if guard is not None:
                await self._check_guard(kind, repo, guard)
            instance = await repo.create(values)
        return to_row(kind, instance)

    async def update(
        self,
        kind: ConfigurationKind,
        record_id: int,
        values: RecordValues,
        guard: WriteGuard | None = None,
    ) -> RecordValues | None:
        async with self._bounded("update", kind):
            repo = self._repository(kind)
            if await repo.get_by_id(record_id) is None:
                return None
            if guard is not None:
                await self._check_guard(kind, repo, guard)
            instance = await repo.update(record_id, values)
        return to_row(kind, instance) if instance is not None else None

    async def delete(self, kind: ConfigurationKind, record_id: int) -> bool:
        async with self._bounded("delete", kind):
            return await self._repository(kind).delete(record_id)
