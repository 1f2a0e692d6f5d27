"""Unit tests for revenue/domain/registry/intervals.py."""

from datetime import date

import pytest

from revenue.domain.registry.intervals import Interval, find_overlaps


def _row(record_id: int, start: date, end: date | None = None) -> dict[str, object]:
    return {"id": record_id, "effective_date": start, "expiration_date": end}


@pytest.mark.unit
class TestInterval:
    """Test inclusive interval arithmetic."""

    def test_contains_both_endpoints(self) -> None:
        """Test that the first and last day are inside the interval."""
        interval = Interval(date(2024, 1, 1), date(2024, 12, 31))

        assert interval.contains(date(2024, 1, 1))
        assert interval.contains(date(2024, 12, 31))
        assert not interval.contains(date(2023, 12, 31))
        assert not interval.contains(date(2025, 1, 1))

    def test_open_ended_interval_contains_far_future(self) -> None:
        """Test that a missing end never expires."""
        interval = Interval(date(2024, 1, 1))

        assert interval.contains(date(9999, 12, 31))
        assert not interval.contains(date(2023, 12, 31))

    @pytest.mark.parametrize(
        ("first", "second", "expected"),
        [
            # Sharing a single day is an overlap
            (
                Interval(date(2024, 1, 1), date(2024, 6, 30)),
                Interval(date(2024, 6, 30), None),
                True,
            ),
            # Adjacent days do not overlap
            (
                Interval(date(2024, 1, 1), date(2024, 6, 30)),
                Interval(date(2024, 7, 1), None),
                False,
            ),
            (Interval(date(2024, 1, 1)), Interval(date(2030, 1, 1)), True),
            (
                Interval(date(2024, 1, 1), date(2024, 1, 31)),
                Interval(date(2023, 1, 1), date(2023, 12, 31)),
                False,
            ),
            (
                Interval(date(2024, 3, 1), date(2024, 3, 31)),
                Interval(date(2024, 1, 1), date(2024, 12, 31)),
                True,
            ),
        ],
    )
    def test_overlaps(self, first: Interval, second: Interval, expected: bool) -> None:
        """Test the overlap rule in both directions."""
        assert first.overlaps(second) is expected
        assert second.overlaps(first) is expected

    def test_of_reads_row_columns(self) -> None:
        """Test building an interval from a stored row."""
        interval = Interval.of(_row(1, date(2024, 1, 1), date(2024, 2, 1)))

        assert interval.as_tuple() == (date(2024, 1, 1), date(2024, 2, 1))


@pytest.mark.unit
class TestFindOverlaps:
    """Test overlap detection against stored rows."""

    def test_returns_only_overlapping_rows_in_input_order(self) -> None:
        """Test that disjoint rows are left out."""
        rows = [
            _row(1, date(2023, 1, 1), date(2023, 12, 31)),
            _row(2, date(2024, 1, 1), None),
            _row(3, date(2024, 5, 1), date(2024, 5, 31)),
        ]

        result = find_overlaps(Interval(date(2024, 5, 15)), rows)

        assert [row["id"] for row in result] == [2, 3]

    def test_excluded_id_never_conflicts_with_itself(self) -> None:
        """Test that the record being updated is skipped."""
        rows = [_row(7, date(2024, 1, 1))]

        assert find_overlaps(Interval(date(2024, 1, 1)), rows, exclude_id=7) == []

    def test_empty_rows(self) -> None:
        """Test that no rows means no overlaps."""
        assert find_overlaps(Interval(date(2024, 1, 1)), []) == []
