"""
Date and time helpers.

Timestamps are stored as ISO-8601 strings in UTC; these helpers convert
between those strings and timezone-aware datetimes.
"""

import calendar
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime, None]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """
    Parse an ISO string, date or datetime into an aware UTC datetime.

    Examples:
        >>> parse_datetime("2026-01-29T10:30:00Z")
        datetime.datetime(2026, 1, 29, 10, 30, tzinfo=datetime.timezone.utc)
        >>> parse_datetime("2026-01-29")
        datetime.datetime(2026, 1, 29, 0, 0, tzinfo=datetime.timezone.utc)
        >>> parse_datetime("") is None
        True
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparsable datetime value: {value!r}")
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_date(value: DateLike) -> Optional[date]:
    dt = parse_datetime(value)
    return dt.date() if dt else None


def to_iso(value: DateLike) -> Optional[str]:
    dt = parse_datetime(value)
    return dt.isoformat() if dt else None


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def start_of_month(dt: Optional[datetime] = None) -> datetime:
    dt = dt or utcnow()
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def format_date_simple(value: DateLike) -> str:
    """
    Format a stored timestamp as a short date.

    Examples:
        >>> format_date_simple("2026-01-29T10:30:00Z")
        'Jan 29, 2026'
        >>> format_date_simple(None)
        '-'
    """
    dt = parse_datetime(value)
    if not dt:
        return "-"
    return dt.strftime("%b %d, %Y")


def format_date_long(value: DateLike) -> str:
    """Format as 'January 2, 2006' style, used in subscription messages."""
    dt = parse_datetime(value)
    if not dt:
        return ""
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"


def format_date_relative(value: DateLike) -> str:
    """
    Relative time for recent timestamps (e.g., "2h ago", "Yesterday"),
    otherwise the short date.
    """
    dt = parse_datetime(value)
    if not dt:
        return "Never"

    diff = utcnow() - dt
    seconds = diff.total_seconds()
    if seconds < 0:
        return format_date_simple(dt)
    if seconds < 3600:
        minutes = int(seconds // 60)
        return "Just now" if minutes < 1 else f"{minutes}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    if diff.days == 1:
        return "Yesterday"
    if diff.days < 7:
        return f"{diff.days}d ago"
    return format_date_simple(dt)
