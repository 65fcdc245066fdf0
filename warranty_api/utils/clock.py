"""Clock helpers. Services take ``now`` explicitly; routes obtain it here."""

import calendar
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive values are treated as UTC; SQLite hands timestamps back without
    tzinfo.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month, in UTC.

    Raises:
        ValueError: month outside 1..12 or year below 1
    """
    if not 1 <= month <= 12 or year < 1:
        raise ValueError(f"Invalid year or month: {year}-{month}")
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end
