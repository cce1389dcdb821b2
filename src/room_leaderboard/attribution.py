"""Decide who gets credit for a timer and how long they actually overlapped it.

Count credit and minute credit answer different questions. A user who walks
in two minutes after a pomodoro started still "did" that pomodoro, so
eligibility allows a grace period after the start. Minute totals only ever
count real co-presence, whether or not the user was eligible.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from .models import PresenceWindow

DEFAULT_GRACE_PERIOD = timedelta(minutes=5)


def eligible_for_timer_count(
    windows: Iterable[PresenceWindow],
    timer_start: datetime,
    grace_period: timedelta = DEFAULT_GRACE_PERIOD,
) -> bool:
    """True if a window covers ``timer_start`` or begins within the grace period."""
    grace_end = timer_start + grace_period
    for window in windows:
        if window.contains(timer_start):
            return True
        if timer_start <= window.join_time <= grace_end:
            return True
    return False


def overlap_minutes(
    windows: Iterable[PresenceWindow], timer_start: datetime, timer_end: datetime
) -> float:
    total = timedelta(0)
    for window in windows:
        start = max(window.join_time, timer_start)
        end = timer_end if window.leave_time is None else min(window.leave_time, timer_end)
        if end > start:
            total += end - start
    return total.total_seconds() / 60.0
