"""Tests for calendar-day helpers."""
from datetime import date, datetime

import pytest

from intern_rotations import dates
from intern_rotations.errors import ValidationError


class TestParseDay:
    def test_plain_date_string(self):
        assert dates.parse_day("2026-01-29") == date(2026, 1, 29)

    @pytest.mark.parametrize("value", [
        "2026-01-29T23:30:00-05:00",
        "2026-01-29T00:00:00Z",
        "2026-01-29 08:15",
    ])
    def test_timestamps_are_truncated_not_shifted(self, value):
        assert dates.parse_day(value) == date(2026, 1, 29)

    def test_native_values(self):
        assert dates.parse_day(date(2026, 3, 1)) == date(2026, 3, 1)
        assert dates.parse_day(datetime(2026, 3, 1, 23, 59)) == date(2026, 3, 1)

    @pytest.mark.parametrize("value", [None, "", "29/01/2026", "2026-02-30", "not a date", 20260129])
    def test_invalid_input_is_none(self, value):
        assert dates.parse_day(value) is None


class TestReferenceDay:
    def test_supplied_day_is_used(self):
        assert dates.reference_day("2026-01-29T23:00:00Z") == date(2026, 1, 29)

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_day_falls_back_to_today(self, value):
        assert dates.reference_day(value) == dates.today()

    @pytest.mark.parametrize("value", ["29/01/2026", "2026-02-30", "tomorrow"])
    def test_unreadable_day_is_rejected(self, value):
        with pytest.raises(ValidationError):
            dates.reference_day(value)


class TestComparisons:
    def test_invalid_operands_are_never_before_after_or_inside(self):
        d = date(2026, 1, 1)
        assert not dates.is_before("bogus", d)
        assert not dates.is_after(d, None)
        assert not dates.includes("bogus", d, d)
        assert not dates.includes(d, "bogus", d)
        assert not dates.ranges_overlap(d, d, "bogus", d)

    def test_includes_is_closed_and_open_ended_without_end(self):
        assert dates.includes("2026-01-01", "2026-01-14", "2026-01-14")
        assert not dates.includes("2026-01-01", "2026-01-14", "2026-01-15")
        assert dates.includes("2026-01-01", None, "2027-06-01")

    def test_ranges_overlap_on_shared_day(self):
        assert dates.ranges_overlap("2026-01-01", "2026-01-14", "2026-01-14", "2026-01-20")
        assert not dates.ranges_overlap("2026-01-01", "2026-01-14", "2026-01-15", "2026-01-20")


class TestSpans:
    def test_span_is_inclusive(self):
        assert dates.span_days("2026-01-01", "2026-01-01") == 1
        assert dates.span_days("2026-01-01", "2026-01-14") == 14

    def test_span_of_invalid_or_reversed_range_is_zero(self):
        assert dates.span_days("2026-01-10", "2026-01-01") == 0
        assert dates.span_days(None, "2026-01-01") == 0

    def test_end_for_duration(self):
        assert dates.end_for_duration(date(2026, 1, 1), 14) == date(2026, 1, 14)
        assert dates.end_for_duration(date(2026, 1, 1), 1) == date(2026, 1, 1)
        assert dates.end_for_duration("garbage", 14) is None

    def test_format_day(self):
        assert dates.format_day(datetime(2026, 1, 29, 10, 0)) == "2026-01-29"
        assert dates.format_day("nope") is None
