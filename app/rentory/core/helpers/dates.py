import calendar
from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return utcnow().date()


def add_months(value: date, months: int) -> date:
    """
    Shift a date by a number of months, clamping the day to the last day of
    the target month (e.g. 31 January + 1 month is 28 or 29 February).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive overlap: two ranges sharing a boundary date overlap."""
    return start_a <= end_b and end_a >= start_b


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """
    Convert an inclusive date range to a half-open UTC datetime interval
    ``[start 00:00, end + 1 day 00:00)``.
    """
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lower, upper
