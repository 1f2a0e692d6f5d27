"""Process-local configuration store.

Rows live in one dict per kind. Every mutation of a kind runs under that
kind's ``asyncio.Lock``, which makes id allocation and guarded writes
serializable within the event loop. Ids come from a counter that never goes
backwards, so a deleted id is never handed out again.
"""

from __future__ import annotations

import asyncio
import itertools
from contextlib import asynccontextmanager
from copy import deepcopy
from typing import TYPE_CHECKING

from loguru import logger

from revenue.core.exceptions import StoreUnavailableError
from revenue.domain.registry.store import RecordFilter

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from revenue.core.types import RecordValues
    from revenue.domain.registry.kinds import ConfigurationKind
    from revenue.domain.registry.store import WriteGuard


class InMemoryConfigurationStore:
    """Dict-backed ``ConfigurationStore``.

    Args:
        timeout: Seconds a mutation may wait for its kind's lock.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._rows: dict[str, dict[int, RecordValues]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._ids = itertools.count(1)

    def _table(self, kind: ConfigurationKind) -> dict[int, RecordValues]:
        return self._rows.setdefault(kind.name, {})

    @asynccontextmanager
    async def _locked(self, kind: ConfigurationKind) -> AsyncIterator[None]:
        lock = self._locks.setdefault(kind.name, asyncio.Lock())
        try:
            async with asyncio.timeout(self.timeout):
                await lock.acquire()
        except TimeoutError as e:
            logger.error("Timed out waiting for {} store lock", kind.name)
            msg = f"Configuration store busy for {kind.label}"
            raise StoreUnavailableError(msg, context={"kind": kind.name}) from e
        try:
            yield
        finally:
            lock.release()

    async def get(self, kind: ConfigurationKind, record_id: int) -> RecordValues | None:
        row = self._table(kind).get(record_id)
        return deepcopy(row) if row is not None else None

    async def scan(
        self, kind: ConfigurationKind, where: RecordFilter | None = None
    ) -> list[RecordValues]:
        where = where or RecordFilter()
        rows = self._table(kind).values()
        return [deepcopy(row) for row in rows if where.matches(row)]

    async def insert(
        self,
        kind: ConfigurationKind,
        values: RecordValues,
        guard: WriteGuard | None = None,
    ) -> RecordValues:
        async with self._locked(kind):
            table = self._table(kind)
            if guard is not None:
                guard.check(self._siblings(table, guard))
            row = {**deepcopy(values), "id": next(self._ids)}
            table[row["id"]] = row
            return deepcopy(row)

    async def update(
        self,
        kind: ConfigurationKind,
        record_id: int,
        values: RecordValues,
        guard: WriteGuard | None = None,
    ) -> RecordValues | None:
        async with self._locked(kind):
            table = self._table(kind)
            current = table.get(record_id)
            if current is None:
                return None
            if guard is not None:
                guard.check(self._siblings(table, guard))
            row = {**current, **deepcopy(values), "id": record_id}
            table[record_id] = row
            return deepcopy(row)

    async def delete(self, kind: ConfigurationKind, record_id: int) -> bool:
        async with self._locked(kind):
            return self._table(kind).pop(record_id, None) is not None

    @staticmethod
    def _siblings(
        table: dict[int, RecordValues], guard: WriteGuard
    ) -> list[RecordValues]:
        where = RecordFilter(match=guard.natural_key)
        return [row for row in table.values() if where.matches(row)]
