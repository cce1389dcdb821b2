"""Fold presence windows and timer events into ranked per-user statistics."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence

from .attribution import eligible_for_timer_count, overlap_minutes
from .config import EngineSettings
from .models import (
    Leaderboard,
    PresenceSnapshot,
    PresenceWindow,
    TimerEvent,
    TimerSnapshot,
    TimerType,
    UserStats,
)

logger = logging.getLogger(__name__)


def compute_user_stats(
    windows_by_user: Mapping[str, Sequence[PresenceWindow]],
    timer_events: Iterable[TimerEvent],
    settings: EngineSettings | None = None,
) -> list[UserStats]:
    """Return one ``UserStats`` per user, in the order users were first seen."""
    settings = settings or EngineSettings()
    stats: dict[str, UserStats] = {}
    for user, windows in windows_by_user.items():
        entry = UserStats(user=user)
        entry.presence_minutes = sum(window.duration_minutes for window in windows)
        if windows:
            entry.first_seen = windows[0].join_time
            last = windows[-1]
            entry.last_seen = last.leave_time or last.join_time
            entry.currently_present = last.still_present
        stats[user] = entry

    for event in timer_events:
        for user, windows in windows_by_user.items():
            entry = stats[user]
            minutes = overlap_minutes(windows, event.start_time, event.end_time)
            counted = eligible_for_timer_count(windows, event.start_time, settings.grace_period)
            if event.timer_type is TimerType.WORK:
                entry.work_minutes += minutes
                entry.pomodoro_count += int(counted)
            else:
                entry.break_minutes += minutes
                entry.break_count += int(counted)

    return list(stats.values())


def rank_users(stats: Iterable[UserStats]) -> list[UserStats]:
    """Order by presence minutes, descending; equal totals keep their order."""
    return sorted(stats, key=lambda entry: entry.presence_minutes, reverse=True)


def build_leaderboard(
    windows_by_user: Mapping[str, Sequence[PresenceWindow]],
    timer_events: Sequence[TimerEvent],
    latest_presence: Optional[PresenceSnapshot] = None,
    latest_timer: Optional[TimerSnapshot] = None,
    settings: EngineSettings | None = None,
    generated_at: datetime | None = None,
) -> Leaderboard:
    currently_present = list(latest_presence.users_present) if latest_presence else []
    present = set(currently_present)
    ranked = rank_users(compute_user_stats(windows_by_user, timer_events, settings))
    # The latest snapshot is more precise than window state for who is here now.
    for entry in ranked:
        entry.currently_present = entry.user in present

    leaderboard = Leaderboard(
        generated_at=generated_at or datetime.now(timezone.utc),
        currently_present=currently_present,
        users=ranked,
        work_timer_count=sum(1 for event in timer_events if event.timer_type is TimerType.WORK),
        break_timer_count=sum(1 for event in timer_events if event.timer_type is TimerType.BREAK),
        latest_timer=latest_timer,
    )
    logger.info(
        "Leaderboard built: %d users, %d pomodoros credited, %d present now",
        leaderboard.total_users,
        leaderboard.total_pomodoros,
        len(currently_present),
    )
    return leaderboard


def format_duration(minutes: float) -> str:
    total = int(round(minutes))
    hours, mins = divmod(total, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"
