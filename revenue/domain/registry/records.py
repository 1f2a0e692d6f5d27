"""Configuration records as returned by the registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from revenue.core.types import RecordValues
from revenue.domain.registry.intervals import Interval
from revenue.domain.registry.kinds import ConfigurationKind, RecordStatus


def derive_status(expiration_date: date | None, today: date) -> RecordStatus:
    """Status implied by the dates alone.

    A version is expired once its expiration date is today or earlier. The
    query date of a list never changes the answer; only the registry clock
    does.
    """
    if expiration_date is not None and expiration_date <= today:
        return RecordStatus.EXPIRED
    return RecordStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class ConfigurationRecord:
    """One stored version of a configuration.

    ``values`` holds the natural key and payload fields of the kind; the
    interval and status live in their own attributes.
    """

    id: int
    kind: str
    effective_date: date
    expiration_date: date | None
    status: RecordStatus
    values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(
        cls, kind: ConfigurationKind, row: RecordValues, today: date
    ) -> ConfigurationRecord:
        """Build a record from a store row, recomputing its status.

        A persisted status column is never trusted; it is a cache of the
        date-derived value.
        """
        return cls(
            id=row["id"],
            kind=kind.name,
            effective_date=row["effective_date"],
            expiration_date=row.get("expiration_date"),
            status=derive_status(row.get("expiration_date"), today),
            values={
                name: row.get(name) for name in kind.natural_key + kind.value_fields
            },
        )

    @property
    def interval(self) -> Interval:
        return Interval(self.effective_date, self.expiration_date)

    def as_dict(self) -> dict[str, Any]:
        """Flatten to a single mapping for serialization."""
        return {
            "id": self.id,
            **self.values,
            "effective_date": self.effective_date,
            "expiration_date": self.expiration_date,
            "status": self.status.value,
        }
