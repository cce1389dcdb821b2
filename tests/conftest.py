from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from room_leaderboard.models import ActivityRecord, PresenceSnapshot, PresenceWindow

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def at() -> Callable[..., datetime]:
    """Return a helper mapping minutes (and seconds) after a fixed origin to a datetime."""

    def _at(minutes: float, seconds: int = 0) -> datetime:
        return BASE_TIME + timedelta(minutes=minutes, seconds=seconds)

    return _at


@pytest.fixture
def snapshot(at):
    def _snapshot(minutes: float, *users: str) -> PresenceSnapshot:
        return PresenceSnapshot(timestamp=at(minutes), users_present=tuple(users))

    return _snapshot


@pytest.fixture
def activity(at):
    def _activity(minutes: float, user: str, action: str, time_ago: str = "1 min ago") -> ActivityRecord:
        return ActivityRecord(
            estimated_time=at(minutes),
            scrape_time=at(minutes + 1),
            user=user,
            action=action,
            time_ago_raw=time_ago,
        )

    return _activity


@pytest.fixture
def window(at):
    def _window(join: float, leave: float | None) -> PresenceWindow:
        return PresenceWindow(
            join_time=at(join), leave_time=at(leave) if leave is not None else None
        )

    return _window


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path
