"""Validity intervals and overlap detection.

Intervals are inclusive at both ends. A missing end means the version never
expires. Two intervals ``[a1, a2]`` and ``[b1, b2]`` overlap iff
``a1 <= b2`` and ``b1 <= a2``, with a missing end read as +inf.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from revenue.core.types import RecordValues


@dataclass(frozen=True, slots=True)
class Interval:
    """Inclusive ``[start, end]`` span of days; ``end=None`` is open-ended."""

    start: date
    end: date | None = None

    @classmethod
    def of(cls, row: RecordValues) -> "Interval":
        """Read the interval stored on a configuration row."""
        return cls(row["effective_date"], row.get("expiration_date"))

    def contains(self, day: date) -> bool:
        return self.start <= day and (self.end is None or day <= self.end)

    def overlaps(self, other: "Interval") -> bool:
        starts_before_other_ends = other.end is None or self.start <= other.end
        other_starts_before_end = self.end is None or other.start <= self.end
        return starts_before_other_ends and other_starts_before_end

    def as_tuple(self) -> tuple[date, date | None]:
        return self.start, self.end


def find_overlaps(
    candidate: Interval,
    rows: Iterable[RecordValues],
    exclude_id: int | None = None,
) -> list[RecordValues]:
    """Return the rows whose interval overlaps ``candidate``.

    ``rows`` are expected to share one natural key; filtering by key is the
    caller's job. The row with ``exclude_id`` is skipped so a record being
    replaced does not conflict with itself.

    Args:
        candidate: Interval being written.
        rows: Stored rows of the same natural key.
        exclude_id: Id of the record being updated, if any.

    Returns:
        list[RecordValues]: Conflicting rows in input order.
    """
    return [
        row
        for row in rows
        if row["id"] != exclude_id and candidate.overlaps(Interval.of(row))
    ]
