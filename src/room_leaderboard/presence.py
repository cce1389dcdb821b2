"""Infer continuous presence windows from discrete room snapshots.

The builder is a fold over the snapshot sequence. Each step compares the
membership of the new snapshot with the previous one, opens a window for
every user that appeared and closes the open window of every user that
disappeared. The accumulator is never mutated; each step returns a new one,
so any prefix of the snapshot sequence can be folded on its own.

Snapshots only tell us that a user was (or was not) in the room at sampling
time, so the edges of a window are estimates:

* joins prefer a precise "joined" entry from the activity feed that falls
  between the two snapshots; otherwise the join is placed just after the
  previous snapshot, unless the two snapshots are more than ``gap_cap``
  apart, in which case it is placed ``gap_cap`` before the current one;
* leaves are placed just before the snapshot in which the user is missing.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from functools import reduce
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from .config import EngineSettings
from .models import PresenceSnapshot, PresenceWindow

logger = logging.getLogger(__name__)

JoinEvents = Mapping[str, Sequence[datetime]]


@dataclass(slots=True, frozen=True)
class PresenceState:
    """Fold accumulator: windows per user plus the last snapshot seen."""

    windows: Mapping[str, tuple[PresenceWindow, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    previous: Optional[PresenceSnapshot] = None

    def open_window(self, user: str) -> Optional[PresenceWindow]:
        history = self.windows.get(user, ())
        if history and history[-1].is_open:
            return history[-1]
        return None


def presence_step(
    state: PresenceState,
    snapshot: PresenceSnapshot,
    join_events: JoinEvents | None = None,
    settings: EngineSettings | None = None,
) -> PresenceState:
    settings = settings or EngineSettings()
    join_events = join_events or {}
    previous = state.previous
    before = previous.users_present if previous else ()
    before_set = set(before)
    current_set = set(snapshot.users_present)
    windows = dict(state.windows)

    for user in snapshot.users_present:
        if user in before_set or state.open_window(user) is not None:
            continue
        join_time = infer_join_time(
            previous, snapshot, join_events.get(user, ()), settings
        )
        windows[user] = windows.get(user, ()) + (PresenceWindow(join_time=join_time),)

    for user in before:
        if user in current_set:
            continue
        history = windows.get(user, ())
        if not history or not history[-1].is_open:
            continue
        last = history[-1]
        leave_time = max(snapshot.timestamp - settings.leave_offset, last.join_time)
        windows[user] = history[:-1] + (replace(last, leave_time=leave_time),)

    return PresenceState(windows=MappingProxyType(windows), previous=snapshot)


def infer_join_time(
    previous: Optional[PresenceSnapshot],
    current: PresenceSnapshot,
    precise_joins: Sequence[datetime],
    settings: EngineSettings,
) -> datetime:
    if previous is None:
        return current.timestamp

    index = bisect_right(precise_joins, previous.timestamp)
    if index < len(precise_joins) and precise_joins[index] <= current.timestamp:
        return precise_joins[index]

    gap = current.timestamp - previous.timestamp
    if gap > settings.gap_cap:
        return current.timestamp - settings.gap_cap
    return min(previous.timestamp + settings.join_offset, current.timestamp)


def fold_presence(
    snapshots: Iterable[PresenceSnapshot],
    join_events: JoinEvents | None = None,
    settings: EngineSettings | None = None,
) -> PresenceState:
    """Fold snapshots (sorted by time, ties in input order) into a state."""
    ordered = sorted(snapshots, key=lambda snapshot: snapshot.timestamp)
    return reduce(
        lambda state, snapshot: presence_step(state, snapshot, join_events, settings),
        ordered,
        PresenceState(),
    )


def close_open_windows(state: PresenceState, now: datetime) -> dict[str, list[PresenceWindow]]:
    """Close every window still open at ``now`` and flag it as still present."""
    closed: dict[str, list[PresenceWindow]] = {}
    for user, history in state.windows.items():
        windows = list(history)
        if windows and windows[-1].is_open:
            last = windows[-1]
            windows[-1] = replace(
                last, leave_time=max(now, last.join_time), still_present=True
            )
        closed[user] = windows
    return closed


def build_presence_windows(
    snapshots: Iterable[PresenceSnapshot],
    join_events: JoinEvents | None = None,
    settings: EngineSettings | None = None,
    now: datetime | None = None,
) -> dict[str, list[PresenceWindow]]:
    state = fold_presence(snapshots, join_events, settings)
    windows = close_open_windows(state, now or datetime.now(timezone.utc))
    logger.debug(
        "Built %d presence windows for %d users",
        sum(len(history) for history in windows.values()),
        len(windows),
    )
    return windows
