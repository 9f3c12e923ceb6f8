from __future__ import annotations

from datetime import date, datetime, time, timedelta
from functools import partial
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"Invalid timestamp (expected ISO 8601): {value!r}")


def now_local(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in ``tz_name`` (server zone when omitted), naive.

    Note: Wrapped so tests can patch/mocked easier.
    """
    if not tz_name:
        return datetime.now()
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def local_clock(tz_name: Optional[str]) -> Callable[[], datetime]:
    """A ``now_local`` bound to one zone, used as the services' clock."""
    if tz_name:
        # Unknown zones fail at startup rather than on first use.
        ZoneInfo(tz_name)
    return partial(now_local, tz_name)


def working_days_between(start: date, end: date) -> int:
    """Count Monday-Friday dates in ``[start, end]`` (inclusive).

    An inverted range counts as zero days.
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=full_weeks * 7 + offset)).weekday() < 5:
            count += 1
    return count


def is_after_cutoff(moment: datetime, cutoff: time) -> bool:
    """True when the clock time (minute resolution) is past ``cutoff``."""
    return (moment.hour, moment.minute) > (cutoff.hour, cutoff.minute)
