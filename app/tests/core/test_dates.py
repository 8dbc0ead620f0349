from datetime import date, datetime, timezone

import pytest
from rentory.core.helpers.dates import add_months, day_bounds, ranges_overlap


class TestAddMonths:
    """Test cases for month arithmetic of maintenance dates"""

    @pytest.mark.parametrize(
        "value,months,expected",
        [
            (date(2026, 3, 15), 4, date(2026, 7, 15)),
            (date(2026, 10, 31), 4, date(2027, 2, 28)),
            (date(2027, 10, 31), 4, date(2028, 2, 29)),
            (date(2026, 12, 1), 1, date(2027, 1, 1)),
            (date(2026, 1, 31), 13, date(2027, 2, 28)),
        ],
    )
    def test_add_months(self, value, months, expected):
        assert add_months(value, months) == expected


class TestRanges:
    """Test cases for inclusive date ranges"""

    def test_shared_boundary_overlaps(self):
        assert ranges_overlap(date(2026, 7, 1), date(2026, 7, 3), date(2026, 7, 3), date(2026, 7, 5)) is True

    def test_disjoint_ranges(self):
        assert ranges_overlap(date(2026, 7, 1), date(2026, 7, 3), date(2026, 7, 4), date(2026, 7, 5)) is False

    def test_day_bounds(self):
        lower, upper = day_bounds(date(2026, 7, 1), date(2026, 7, 3))

        assert lower == datetime(2026, 7, 1, tzinfo=timezone.utc)
        assert upper == datetime(2026, 7, 4, tzinfo=timezone.utc)
