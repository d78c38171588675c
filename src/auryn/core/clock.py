"""Civil-date helpers pinned to one fixed time zone - no I/O dependencies."""

import calendar
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Tokyo"


def civil_now(tz: str = DEFAULT_TIMEZONE) -> datetime:
    """Current wall-clock time in the civil zone."""
    return datetime.now(ZoneInfo(tz))


def civil_today(tz: str = DEFAULT_TIMEZONE) -> date:
    """Today's date in the civil zone, independent of the machine locale."""
    return civil_now(tz).date()


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-06-01T03:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month (closed range)."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_days(year: int, month: int) -> list[date]:
    """Every calendar day of a month, in order."""
    first, last = month_bounds(year, month)
    return [add_days(first, i) for i in range((last - first).days + 1)]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by delta months, rolling the year over."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def parse_date(value) -> date | None:
    """
    Parse a YYYY-MM-DD string (or date) into a date. Empty values become None.

    A full ISO datetime is also accepted; anything else in the string is an error.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a YYYY-MM-DD string, got {type(value).__name__}")
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def format_date(d: date | None) -> str | None:
    return d.isoformat() if d else None


def day_bounds(start_date: date, end_date: date, tz: str = DEFAULT_TIMEZONE) -> tuple[str, str]:
    """RFC 3339 instants covering [start_date, end_date] in the civil zone (end exclusive)."""
    zone = ZoneInfo(tz)
    start = datetime.combine(start_date, datetime.min.time(), tzinfo=zone)
    end = datetime.combine(add_days(end_date, 1), datetime.min.time(), tzinfo=zone)
    return start.isoformat(), end.isoformat()
