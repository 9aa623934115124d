"""Date helpers shared by the questionnaire and the admin screens.

Dates are displayed as DD/MM/YYYY and accepted as DD/MM/YYYY, ISO dates or
ISO datetimes. Unparseable input formats to an empty string.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
DAYS_PER_YEAR = 365.25


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """Parse a date or datetime value into a datetime.

    Args:
        value: datetime, date, "DD/MM/YYYY", "YYYY-MM-DD" or ISO datetime

    Returns:
        Parsed datetime, or None if the value cannot be parsed
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    parts = text.split("/")
    if len(parts) == 3:
        try:
            day, month, year = (int(part) for part in parts)
            return datetime(year, month, day)
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_date(value: DateLike) -> Optional[date]:
    """Parse a value into a calendar date, or None if it cannot be parsed."""
    parsed = parse_datetime(value)
    return parsed.date() if parsed is not None else None


def _aligned(moment: datetime, now: Optional[datetime]) -> tuple[datetime, datetime]:
    # Compare aware with aware and naive with naive
    if now is None:
        now = datetime.now(timezone.utc) if moment.tzinfo else datetime.now()
    if moment.tzinfo and not now.tzinfo:
        now = now.replace(tzinfo=timezone.utc)
    elif now.tzinfo and not moment.tzinfo:
        moment = moment.replace(tzinfo=now.tzinfo)
    return moment, now


def format_date(value: DateLike) -> str:
    """Format as DD/MM/YYYY."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y")


def format_datetime(value: DateLike) -> str:
    """Format as DD/MM/YYYY HH:MM."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y %H:%M")


def format_date_for_input(value: DateLike) -> str:
    """Format as YYYY-MM-DD, the value format of date inputs."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime("%Y-%m-%d")


def format_relative_time(value: DateLike, now: Optional[datetime] = None) -> str:
    """Describe a moment relative to now, e.g. "2 days ago" or "in 3 hours"."""
    moment = parse_datetime(value)
    if moment is None:
        return ""
    moment, now = _aligned(moment, now)

    diff_seconds = (moment - now).total_seconds()
    # Whole units, truncated toward zero
    diff_days = int(diff_seconds / SECONDS_PER_DAY)
    diff_hours = int(diff_seconds / SECONDS_PER_HOUR)
    diff_minutes = int(diff_seconds / SECONDS_PER_MINUTE)

    if abs(diff_days) >= 1:
        return f"in {diff_days} days" if diff_days > 0 else f"{abs(diff_days)} days ago"
    if abs(diff_hours) >= 1:
        return f"in {diff_hours} hours" if diff_hours > 0 else f"{abs(diff_hours)} hours ago"
    if abs(diff_minutes) >= 1:
        return f"in {diff_minutes} minutes" if diff_minutes > 0 else f"{abs(diff_minutes)} minutes ago"
    return "just now"


def age_from_date_of_birth(date_of_birth: DateLike, today: Optional[date] = None) -> int:
    """Age in whole years, counting a birthday only once it has been reached.

    Returns 0 for an unparseable date of birth.
    """
    dob = parse_date(date_of_birth)
    if dob is None:
        return 0
    today = today or date.today()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def approximate_age(date_of_birth: DateLike, today: Optional[date] = None) -> int:
    """Age as elapsed days divided by 365.25, floored.

    Off by one near birthdays; use age_from_date_of_birth for eligibility.
    """
    dob = parse_date(date_of_birth)
    if dob is None:
        return 0
    today = today or date.today()
    return math.floor((today - dob).days / DAYS_PER_YEAR)


@dataclass
class TimeRemaining:
    days: int
    hours: int
    minutes: int
    expired: bool


def time_remaining(deadline: DateLike, now: Optional[datetime] = None) -> TimeRemaining:
    """Whole days, hours and minutes left until a deadline."""
    moment = parse_datetime(deadline)
    if moment is None:
        return TimeRemaining(0, 0, 0, True)
    moment, now = _aligned(moment, now)

    diff_seconds = (moment - now).total_seconds()
    if diff_seconds <= 0:
        return TimeRemaining(0, 0, 0, True)

    days = int(diff_seconds // SECONDS_PER_DAY)
    hours = int((diff_seconds % SECONDS_PER_DAY) // SECONDS_PER_HOUR)
    minutes = int((diff_seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE)
    return TimeRemaining(days, hours, minutes, False)
