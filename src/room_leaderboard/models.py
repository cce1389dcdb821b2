"""Domain models for room presence and timer activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


@dataclass(slots=True, frozen=True)
class ActivityRecord:
    """One entry of the activity feed, as persisted in the activities log."""

    estimated_time: datetime
    scrape_time: datetime
    user: str
    action: str
    time_ago_raw: str = ""


@dataclass(slots=True, frozen=True)
class PresenceSnapshot:
    """Room membership observed at a single point in time.

    ``users_present`` keeps the order users were listed in so that every
    derived ordering stays deterministic between runs.
    """

    timestamp: datetime
    users_present: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class TimerSnapshot:
    timestamp: datetime
    timer_running: bool
    timer_value: str = "00:00"
    session_type: str = "unknown"


class TimerType(str, Enum):
    WORK = "work"
    BREAK = "break"


@dataclass(slots=True, frozen=True)
class TimerEvent:
    """A detected start of a work or break timer."""

    start_time: datetime
    timer_type: TimerType
    duration_minutes: int
    started_by: str

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)


@dataclass(slots=True, frozen=True)
class PresenceWindow:
    """A continuous stay of one user in the room."""

    join_time: datetime
    leave_time: Optional[datetime] = None
    still_present: bool = False

    @property
    def is_open(self) -> bool:
        return self.leave_time is None

    @property
    def duration_minutes(self) -> float:
        if self.leave_time is None:
            return 0.0
        return (self.leave_time - self.join_time).total_seconds() / 60.0

    def contains(self, moment: datetime) -> bool:
        if moment < self.join_time:
            return False
        return self.leave_time is None or moment <= self.leave_time


@dataclass(slots=True)
class UserStats:
    """Aggregated engagement numbers for one user."""

    user: str
    presence_minutes: float = 0.0
    work_minutes: float = 0.0
    break_minutes: float = 0.0
    pomodoro_count: int = 0
    break_count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    currently_present: bool = False

    @property
    def avg_pomodoro_minutes(self) -> float:
        return self.work_minutes / self.pomodoro_count if self.pomodoro_count else 0.0

    @property
    def avg_break_minutes(self) -> float:
        return self.break_minutes / self.break_count if self.break_count else 0.0


@dataclass(slots=True)
class Leaderboard:
    generated_at: datetime
    currently_present: list[str] = field(default_factory=list)
    users: list[UserStats] = field(default_factory=list)
    work_timer_count: int = 0
    break_timer_count: int = 0
    latest_timer: Optional[TimerSnapshot] = None

    @property
    def total_users(self) -> int:
        return len(self.users)

    @property
    def total_pomodoros(self) -> int:
        return sum(stats.pomodoro_count for stats in self.users)

    @property
    def total_work_minutes(self) -> float:
        return sum(stats.work_minutes for stats in self.users)
