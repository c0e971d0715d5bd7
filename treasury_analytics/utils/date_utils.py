"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, matching how transactions are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise aware datetimes to naive UTC; naive values are assumed to be UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def week_start(day: date) -> date:
    """Sunday on or before the given date"""
    # Python weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def sunday_based_weekday(day: date) -> int:
    """Weekday index with Sunday=0 .. Saturday=6"""
    return (day.weekday() + 1) % 7
