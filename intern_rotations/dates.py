"""
Calendar-day helpers.

Every date the engine touches is reduced to a plain `datetime.date`. Richer
timestamps are truncated to their calendar-date component; time-zone offsets
are never applied, so a value can't drift across a day boundary. Anything
that can't be read as a date becomes `None`, and every comparison helper
below answers False when an operand is `None`.
"""
import re
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from .config import config
from .errors import ValidationError

_DAY_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:$|[T ])")


def parse_day(value) -> Optional[date]:
    """Normalize a date-like value to a calendar day, or None when invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    m = _DAY_PREFIX.match(value.strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def today(tz: Optional[str] = None) -> date:
    """Current calendar day in the reference time zone."""
    return datetime.now(ZoneInfo(tz or config.TIMEZONE)).date()


def reference_day(value=None) -> date:
    """`value` as a calendar day, or today when omitted. Unreadable values raise ValidationError."""
    if value is None or value == "":
        return today()
    day = parse_day(value)
    if day is None:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    return day


def format_day(value) -> Optional[str]:
    d = parse_day(value)
    return d.isoformat() if d else None


def add_days(value, days: int) -> Optional[date]:
    d = parse_day(value)
    if d is None:
        return None
    return d + timedelta(days=days)


def end_for_duration(start, duration_days: int) -> Optional[date]:
    """Last day of a block of `duration_days` days beginning on `start`."""
    return add_days(start, duration_days - 1)


def is_before(a, b) -> bool:
    da, db = parse_day(a), parse_day(b)
    if da is None or db is None:
        return False
    return da < db


def is_after(a, b) -> bool:
    da, db = parse_day(a), parse_day(b)
    if da is None or db is None:
        return False
    return da > db


def includes(start, end, day) -> bool:
    """True when `day` falls in [start, end]; a missing end is open-ended."""
    ds, dd = parse_day(start), parse_day(day)
    if ds is None or dd is None:
        return False
    if ds > dd:
        return False
    if end is None:
        return True
    de = parse_day(end)
    if de is None:
        return False
    return de >= dd


def span_days(start, end) -> int:
    """Inclusive number of days from start to end; span(d, d) == 1."""
    ds, de = parse_day(start), parse_day(end)
    if ds is None or de is None or de < ds:
        return 0
    return (de - ds).days + 1


def ranges_overlap(s1, e1, s2, e2) -> bool:
    """Closed-interval overlap: s1 <= e2 and s2 <= e1."""
    ds1, de1, ds2, de2 = (parse_day(v) for v in (s1, e1, s2, e2))
    if None in (ds1, de1, ds2, de2):
        return False
    return ds1 <= de2 and ds2 <= de1
