"""
Timezone utilities for the SIMLOK verification service.

Permits are valid per civil calendar day of the issuing organization
(Asia/Jakarta by default). Timestamps are stored as naive UTC and converted
to the civil zone only for day arithmetic and display.
"""

import re
from datetime import datetime, date, time, timedelta
import pytz

ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def get_civil_timezone(name):
    """Resolve a zone name such as 'Asia/Jakarta' into a pytz timezone."""
    return pytz.timezone(name)


def get_utc_now():
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(pytz.utc)


def get_utc_now_naive():
    """Current UTC time as a naive datetime, the storage representation."""
    return get_utc_now().replace(tzinfo=None)


def to_naive_utc(dt):
    """
    Normalize a datetime to naive UTC for storage.
    Naive input is assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def convert_to_civil(dt, tz):
    """
    Convert a datetime to the civil timezone.

    Args:
        dt: datetime object (naive assumed UTC, or timezone-aware)
        tz: pytz timezone

    Returns:
        datetime object in the civil timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)

    return dt.astimezone(tz)


def civil_date(dt, tz):
    """The calendar date of ``dt`` as observed in the civil timezone."""
    return convert_to_civil(dt, tz).date()


def civil_day_bounds(day, tz):
    """
    Half-open ``[start, end)`` bounds of a civil day, as naive UTC datetimes.

    ``localize`` is applied to each midnight separately so days that span
    an offset change still get their true length.
    """
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return to_naive_utc(start), to_naive_utc(end)


def to_civil_iso(dt, tz):
    """Render a timestamp as ISO-8601 with the civil offset, e.g. 2024-01-15T09:30:00+07:00."""
    if dt is None:
        return None
    return convert_to_civil(dt, tz).isoformat(timespec='seconds')


def format_date(value):
    """YYYY-MM-DD for a date or datetime, None passes through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_iso_date(value):
    """
    Parse a strict YYYY-MM-DD string.

    Raises:
        ValueError: if the string is not a real calendar date in that shape
    """
    if not isinstance(value, str) or not ISO_DATE_RE.fullmatch(value):
        raise ValueError(f"Invalid date: {value!r}")
    return date.fromisoformat(value)
