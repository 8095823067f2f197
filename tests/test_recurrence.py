"""Tests for reminder recurrence scheduling."""

from datetime import datetime, timedelta, timezone

import pytest

from stockroom.recurrence import (
    Recurrence,
    add_months,
    calendar_weeks_between,
    is_due_today,
    next_occurrence,
    normalize_timestamp,
    occurrences_between,
    parse_timestamp,
)

UTC = timezone.utc
NOW = datetime(2024, 3, 15, 10, 0, tzinfo=UTC)  # a Friday


class TestNormalizeTimestamp:
    """Tests for normalize_timestamp()."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2024-03-15 08:00:00", "2024-03-15T08:00:00Z"),
            ("2024-03-15T08:00:00+03", "2024-03-15T08:00:00+03:00"),
            ("2024-03-15T08:00:00+0300", "2024-03-15T08:00:00+03:00"),
            ("2024-03-15T08:00:00-05:00", "2024-03-15T08:00:00-05:00"),
            ("2024-03-15T08:00:00z", "2024-03-15T08:00:00Z"),
            ("2024-03-15", "2024-03-15T00:00:00Z"),
            (" 2024-03-15 08:00:00.123456+00 ", "2024-03-15T08:00:00.123456+00:00"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_timestamp(raw) == expected

    def test_blank_is_none(self):
        assert normalize_timestamp("   ") is None


class TestParseTimestamp:
    def test_naive_string_is_utc(self):
        assert parse_timestamp("2024-03-15 08:00:00") == datetime(2024, 3, 15, 8, tzinfo=UTC)

    def test_short_offset(self):
        parsed = parse_timestamp("2024-03-15 08:00:00+03")
        assert parsed == datetime(2024, 3, 15, 5, tzinfo=UTC)

    def test_naive_datetime_is_utc(self):
        assert parse_timestamp(datetime(2024, 1, 1)).tzinfo == UTC

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a date")
        with pytest.raises(ValueError):
            parse_timestamp("")


class TestNextOccurrence:
    """Tests for next_occurrence()."""

    def test_none_in_past_is_none(self):
        assert next_occurrence(NOW - timedelta(hours=1), Recurrence.NONE, NOW) is None

    def test_none_at_now_is_none(self):
        assert next_occurrence(NOW, Recurrence.NONE, NOW) is None

    def test_none_in_future(self):
        start = NOW + timedelta(days=2)
        assert next_occurrence(start, Recurrence.NONE, NOW) == start

    def test_future_start_is_returned(self):
        start = NOW + timedelta(days=3)
        assert next_occurrence(start, Recurrence.WEEKLY, NOW) == start

    def test_weekly_three_weeks_ago_within_a_week(self):
        for offset in (timedelta(0), timedelta(hours=2), timedelta(days=2), timedelta(hours=-5)):
            start = NOW - timedelta(weeks=3) - offset
            occurrence = next_occurrence(start, Recurrence.WEEKLY, NOW)
            assert NOW <= occurrence <= NOW + timedelta(days=7)

    def test_weekly_extra_step_when_rounding_undershoots(self):
        start = NOW - timedelta(weeks=3, hours=2)
        assert next_occurrence(start, "weekly", NOW) == NOW + timedelta(weeks=1, hours=-2)

    def test_biweekly(self):
        start = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        assert next_occurrence(start, Recurrence.BIWEEKLY, NOW) == datetime(2024, 3, 25, 9, tzinfo=UTC)

    def test_monthly_clamps_to_month_end(self):
        start = datetime(2024, 1, 31, 9, 0, tzinfo=UTC)
        now = datetime(2024, 2, 10, tzinfo=UTC)
        assert next_occurrence(start, Recurrence.MONTHLY, now) == datetime(2024, 2, 29, 9, tzinfo=UTC)

    def test_monthly_extra_step(self):
        start = datetime(2024, 1, 20, 9, 0, tzinfo=UTC)
        now = datetime(2024, 3, 25, 10, 0, tzinfo=UTC)
        assert next_occurrence(start, Recurrence.MONTHLY, now) == datetime(2024, 4, 20, 9, tzinfo=UTC)

    def test_quarterly(self):
        start = datetime(2023, 11, 15, 12, 0, tzinfo=UTC)
        assert next_occurrence(start, Recurrence.QUARTERLY, NOW) == datetime(2024, 5, 15, 12, tzinfo=UTC)

    def test_string_start_with_short_offset(self):
        assert next_occurrence("2024-03-15 08:00:00+03", Recurrence.NONE, NOW) is None


class TestIsDueToday:
    def test_later_today(self):
        assert is_due_today(datetime(2024, 3, 8, 15, tzinfo=UTC), Recurrence.WEEKLY, NOW)

    def test_earlier_today_rolls_to_next_week(self):
        assert not is_due_today(datetime(2024, 3, 8, 9, tzinfo=UTC), Recurrence.WEEKLY, NOW)

    def test_offset_is_respected(self):
        # 12:00+03 is 09:00 UTC, already past at 10:00 UTC
        assert not is_due_today("2024-03-08 12:00:00+03", Recurrence.WEEKLY, NOW)

    def test_one_off_later_today(self):
        assert is_due_today("2024-03-15 18:30", Recurrence.NONE, NOW)


class TestOccurrencesBetween:
    """Tests for calendar expansion."""

    def test_weekly_window(self):
        start = datetime(2024, 3, 1, 9, tzinfo=UTC)
        result = occurrences_between(
            start,
            Recurrence.WEEKLY,
            datetime(2024, 3, 10, tzinfo=UTC),
            datetime(2024, 3, 31, 23, 59, tzinfo=UTC),
        )
        assert [o.day for o in result] == [15, 22, 29]

    def test_monthly_window_clamps(self):
        start = datetime(2024, 1, 31, 9, tzinfo=UTC)
        result = occurrences_between(
            start,
            Recurrence.MONTHLY,
            datetime(2024, 2, 1, tzinfo=UTC),
            datetime(2024, 4, 30, 23, 59, tzinfo=UTC),
        )
        assert [(o.month, o.day) for o in result] == [(2, 29), (3, 31), (4, 30)]

    def test_window_is_inclusive(self):
        start = datetime(2024, 3, 1, 9, tzinfo=UTC)
        end = datetime(2024, 3, 8, 9, tzinfo=UTC)
        result = occurrences_between(start, Recurrence.WEEKLY, start, end)
        assert result == [start, end]

    def test_one_off(self):
        start = datetime(2024, 3, 5, 9, tzinfo=UTC)
        window = (datetime(2024, 3, 1, tzinfo=UTC), datetime(2024, 3, 31, tzinfo=UTC))
        assert occurrences_between(start, Recurrence.NONE, *window) == [start]
        assert occurrences_between(start, Recurrence.NONE, window[0] + timedelta(days=10), window[1]) == []

    def test_start_after_window(self):
        start = datetime(2024, 5, 1, tzinfo=UTC)
        assert occurrences_between(start, Recurrence.WEEKLY, NOW, NOW + timedelta(days=7)) == []


class TestCalendarHelpers:
    def test_weeks_start_on_monday(self):
        sunday = datetime(2024, 3, 10, tzinfo=UTC)
        monday = datetime(2024, 3, 11, tzinfo=UTC)
        assert calendar_weeks_between(monday, sunday) == 1

    def test_add_months_across_year(self):
        assert add_months(datetime(2023, 11, 30, tzinfo=UTC), 3) == datetime(2024, 2, 29, tzinfo=UTC)
