"""Nightly matchmaking window (eligibility gate).

All functions are pure: they look only at the wall-clock fields of the
datetime they are given, so callers decide which zone is "local".
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

DEFAULT_OPEN_HOUR = 21
DEFAULT_CLOSE_HOUR = 24


@dataclass(frozen=True)
class WindowBounds:
    """Current or next window boundaries for display."""
    is_open: bool
    opens_at: datetime
    closes_at: datetime


def is_window_open(
    now: datetime,
    open_hour: int = DEFAULT_OPEN_HOUR,
    close_hour: int = DEFAULT_CLOSE_HOUR,
) -> bool:
    """Check whether the local hour of now falls in [open_hour, close_hour).

    Args:
        now: Local time to check
        open_hour: First hour of the window (inclusive)
        close_hour: Hour the window closes (exclusive, 24 = midnight)

    Returns:
        True if pairing requests are accepted at this time
    """
    return open_hour <= now.hour < close_hour


def _at_hour(day: datetime, hour: int) -> datetime:
    # hour may be 24, meaning the following midnight
    start_of_day = day.replace(hour=0, minute=0, second=0, microsecond=0)
    return start_of_day + timedelta(hours=hour)


def window_bounds(
    now: datetime,
    open_hour: int = DEFAULT_OPEN_HOUR,
    close_hour: int = DEFAULT_CLOSE_HOUR,
) -> WindowBounds:
    """Compute the window that is open now, or the next one to open.

    Inside the window, opens_at is today's opening and closes_at the
    upcoming close. Outside, opens_at is the next future opening (today if
    it has not happened yet, otherwise tomorrow).
    """
    if is_window_open(now, open_hour, close_hour):
        return WindowBounds(
            is_open=True,
            opens_at=_at_hour(now, open_hour),
            closes_at=_at_hour(now, close_hour),
        )

    opens_at = _at_hour(now, open_hour)
    if opens_at <= now:
        opens_at = _at_hour(now + timedelta(days=1), open_hour)
    return WindowBounds(
        is_open=False,
        opens_at=opens_at,
        closes_at=opens_at + timedelta(hours=close_hour - open_hour),
    )


def seconds_until_change(
    now: datetime,
    open_hour: int = DEFAULT_OPEN_HOUR,
    close_hour: int = DEFAULT_CLOSE_HOUR,
    bounds: Optional[WindowBounds] = None,
) -> float:
    """Seconds until the window closes (if open) or opens (if closed)."""
    bounds = bounds or window_bounds(now, open_hour, close_hour)
    target = bounds.closes_at if bounds.is_open else bounds.opens_at
    return max(0.0, (target - now).total_seconds())


def format_time_remaining(seconds: float) -> str:
    """Format a countdown the way the arena banner shows it.

    >>> format_time_remaining(3723)
    '1h 2m 3s'
    >>> format_time_remaining(125)
    '2m 5s'
    """
    total = int(max(0.0, seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"
