"""Storage interface the registry engine is written against.

Stores hold plain rows (``RecordValues``) and do no business validation.
They do guarantee that a write carrying a ``WriteGuard`` is checked against
the rows of its natural key atomically with the write, so two concurrent
writers can never both insert overlapping versions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Protocol

from revenue.core.exceptions import ConflictError
from revenue.domain.registry.intervals import Interval, find_overlaps

if TYPE_CHECKING:
    from collections.abc import Iterable

    from revenue.core.types import RecordValues
    from revenue.domain.registry.kinds import ConfigurationKind


@dataclass(frozen=True, slots=True)
class RecordFilter:
    """Declarative row predicate.

    Args:
        as_of: Keep rows whose validity interval contains this day
        match: Keep rows whose columns equal these values
    """

    as_of: date | None = None
    match: dict[str, Any] = field(default_factory=dict)

    def matches(self, row: RecordValues) -> bool:
        if any(row.get(name) != value for name, value in self.match.items()):
            return False
        return self.as_of is None or Interval.of(row).contains(self.as_of)


@dataclass(frozen=True, slots=True)
class WriteGuard:
    """Compare-and-set condition checked by the store inside the write.

    Args:
        natural_key: Natural key of the row being written
        interval: Interval the row will have after the write
        exclude_id: Id of the row being updated, ignored by the check
    """

    natural_key: dict[str, Any]
    interval: Interval
    exclude_id: int | None = None

    def check(self, rows: Iterable[RecordValues]) -> None:
        """Raise if any of ``rows`` overlaps the guarded interval.

        Raises:
            ConflictError: When an overlapping version exists.
        """
        conflicts = find_overlaps(self.interval, rows, self.exclude_id)
        if conflicts:
            ids = [row["id"] for row in conflicts]
            key = ", ".join(f"{k}={v}" for k, v in self.natural_key.items())
            msg = f"Validity interval overlaps existing version(s) {ids} for {key}"
            raise ConflictError(
                msg,
                natural_key=self.natural_key,
                interval=self.interval.as_tuple(),
                conflicting_ids=ids,
            )


class ConfigurationStore(Protocol):
    """Persistence capabilities required by the registry engine.

    Every call completes or fails within the store's timeout; failures to
    reach the backing storage surface as ``StoreUnavailableError``.
    """

    async def get(self, kind: ConfigurationKind, record_id: int) -> RecordValues | None:
        """Fetch one row by id, or None."""
        ...

    async def scan(
        self, kind: ConfigurationKind, where: RecordFilter | None = None
    ) -> list[RecordValues]:
        """Return every row of the kind matching ``where``, unordered."""
        ...

    async def insert(
        self,
        kind: ConfigurationKind,
        values: RecordValues,
        guard: WriteGuard | None = None,
    ) -> RecordValues:
        """Insert a row, assigning a fresh id, and return it."""
        ...

    async def update(
        self,
        kind: ConfigurationKind,
        record_id: int,
        values: RecordValues,
        guard: WriteGuard | None = None,
    ) -> RecordValues | None:
        """Overwrite the given columns of one row; None if the id is unknown."""
        ...

    async def delete(self, kind: ConfigurationKind, record_id: int) -> bool:
        """Remove one row; False if the id is unknown."""
        ...
