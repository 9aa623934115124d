"""Unit tests for date helpers."""

from datetime import date, datetime, timezone

from fokushub.services.date_utils import (
    age_from_date_of_birth,
    approximate_age,
    format_date,
    format_date_for_input,
    format_datetime,
    format_relative_time,
    parse_date,
    time_remaining,
)


class TestParsing:
    """Tests for date parsing."""

    def test_parses_day_month_year(self):
        assert parse_date("02/04/1990") == date(1990, 4, 2)

    def test_parses_iso_date_and_datetime(self):
        assert parse_date("1990-04-02") == date(1990, 4, 2)
        assert parse_date("1990-04-02T10:30:00Z") == date(1990, 4, 2)

    def test_invalid_values_parse_to_none(self):
        assert parse_date("not a date") is None
        assert parse_date("31/02/2020") is None
        assert parse_date("") is None
        assert parse_date(None) is None


class TestFormatting:
    """Tests for display formatting."""

    def test_format_date(self):
        assert format_date("2024-01-05") == "05/01/2024"

    def test_format_datetime(self):
        assert format_datetime(datetime(2024, 1, 5, 9, 7)) == "05/01/2024 09:07"

    def test_format_date_for_input(self):
        assert format_date_for_input("05/01/2024") == "2024-01-05"

    def test_invalid_input_formats_to_empty_string(self):
        assert format_date("garbage") == ""
        assert format_datetime(None) == ""


class TestRelativeTime:
    """Tests for relative time descriptions."""

    NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def test_days_ago(self):
        assert format_relative_time("2026-10-16T12:00:00Z", now=self.NOW) == "2 days ago"

    def test_in_hours(self):
        assert format_relative_time("2026-10-18T15:00:00Z", now=self.NOW) == "in 3 hours"

    def test_minutes_ago(self):
        assert format_relative_time("2026-10-18T11:50:00Z", now=self.NOW) == "10 minutes ago"

    def test_just_now(self):
        assert format_relative_time("2026-10-18T12:00:20Z", now=self.NOW) == "just now"


class TestAge:
    """Tests for age calculation."""

    def test_birthday_not_yet_reached(self):
        """Test the age only increments on the birthday."""
        assert age_from_date_of_birth("2008-10-19", today=date(2026, 10, 18)) == 17
        assert age_from_date_of_birth("2008-10-18", today=date(2026, 10, 18)) == 18

    def test_invalid_date_of_birth_is_zero(self):
        assert age_from_date_of_birth("unknown", today=date(2026, 10, 18)) == 0

    def test_approximate_age_uses_average_year(self):
        """Test the 365.25-day approximation."""
        assert approximate_age("2000-01-01", today=date(2026, 10, 18)) == 26


class TestTimeRemaining:
    """Tests for deadline countdowns."""

    def test_remaining_parts(self):
        now = datetime(2026, 10, 18, 12, 0)
        remaining = time_remaining(datetime(2026, 10, 20, 15, 30), now=now)

        assert (remaining.days, remaining.hours, remaining.minutes) == (2, 3, 30)
        assert remaining.expired is False

    def test_past_deadline_is_expired(self):
        now = datetime(2026, 10, 18, 12, 0)
        assert time_remaining("2026-10-17T12:00:00", now=now).expired is True

    def test_invalid_deadline_is_expired(self):
        assert time_remaining("never").expired is True
