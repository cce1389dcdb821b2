"""Batch recomputation of the leaderboard from the full raw logs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TypeVar

from .config import EngineSettings
from .logs import LogTables, load_tables, to_utc
from .models import Leaderboard, PresenceWindow, TimerEvent
from .presence import build_presence_windows
from .stats import build_leaderboard
from .timers import collect_join_events, count_actions, extract_timer_events

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(slots=True)
class EngineResult:
    leaderboard: Leaderboard
    timer_events: list[TimerEvent] = field(default_factory=list)
    windows: dict[str, list[PresenceWindow]] = field(default_factory=dict)
    action_counts: dict[str, int] = field(default_factory=dict)


def compute(
    tables: LogTables,
    settings: EngineSettings | None = None,
    now: datetime | None = None,
) -> EngineResult:
    """Run every stage over in-memory tables; degenerate input yields empty results."""
    settings = settings or EngineSettings()
    now = to_utc(now) if now is not None else datetime.now(timezone.utc)
    tables = normalize_tables(tables)

    timer_events = extract_timer_events(tables.activities, settings)
    join_events = collect_join_events(tables.activities, settings)
    windows = build_presence_windows(tables.presence, join_events, settings, now=now)
    leaderboard = build_leaderboard(
        windows,
        timer_events,
        latest_presence=_latest(tables.presence),
        latest_timer=_latest(tables.timer_snapshots),
        settings=settings,
        generated_at=now,
    )
    logger.info(
        "Computed %d timer events and %d presence windows",
        len(timer_events),
        sum(len(history) for history in windows.values()),
    )
    return EngineResult(
        leaderboard=leaderboard,
        timer_events=timer_events,
        windows=windows,
        action_counts=count_actions(tables.activities, settings),
    )


def compute_from_dir(
    data_dir: Path,
    settings: EngineSettings | None = None,
    now: datetime | None = None,
) -> EngineResult:
    return compute(load_tables(data_dir), settings, now)


def _latest(items: list[_T]) -> Optional[_T]:
    """Return the item with the latest timestamp; ties go to the last logged."""
    if not items:
        return None
    return sorted(items, key=lambda item: item.timestamp)[-1]  # type: ignore[attr-defined]


def normalize_tables(tables: LogTables) -> LogTables:
    """Copy ``tables`` with every timestamp made UTC-aware; naive values are read as UTC."""
    return LogTables(
        activities=[
            replace(
                record,
                estimated_time=to_utc(record.estimated_time),
                scrape_time=to_utc(record.scrape_time),
            )
            for record in tables.activities
        ],
        presence=[
            replace(snapshot, timestamp=to_utc(snapshot.timestamp))
            for snapshot in tables.presence
        ],
        timer_snapshots=[
            replace(snapshot, timestamp=to_utc(snapshot.timestamp))
            for snapshot in tables.timer_snapshots
        ],
    )
