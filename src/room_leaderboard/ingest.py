"""Record the output of one collector scrape into the raw logs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import EngineSettings
from .dedup import dedup_key, estimate_activity_time, load_existing_keys
from .logs import (
    append_activities,
    append_presence_snapshot,
    append_timer_snapshot,
    split_users,
    to_utc,
)
from .models import ActivityRecord, PresenceSnapshot, TimerSnapshot
from .paths import get_activities_path, get_presence_path, get_snapshots_path

logger = logging.getLogger(__name__)


class ScrapedActivity(BaseModel):
    user: str = "unknown"
    action: str
    time_ago: str = ""

    model_config = ConfigDict(extra="forbid")


class TimerState(BaseModel):
    running: bool = False
    value: str = "00:00"
    session_type: str = "unknown"

    model_config = ConfigDict(extra="forbid")


class ScrapePayload(BaseModel):
    scrape_time: datetime
    users: list[str] = Field(default_factory=list)
    activities: list[ScrapedActivity] = Field(default_factory=list)
    timer: Optional[TimerState] = None

    model_config = ConfigDict(extra="forbid")


@dataclass(slots=True)
class ScrapeResult:
    activities_seen: int
    activities_added: int
    users_present: int


def record_scrape(
    data_dir: Path,
    payload: ScrapePayload,
    settings: EngineSettings | None = None,
) -> ScrapeResult:
    """Append one timer snapshot, one presence snapshot and the unseen activities."""
    settings = settings or EngineSettings()
    scrape_time = to_utc(payload.scrape_time)

    if payload.timer is not None:
        append_timer_snapshot(
            get_snapshots_path(data_dir),
            TimerSnapshot(
                timestamp=scrape_time,
                timer_running=payload.timer.running,
                timer_value=payload.timer.value,
                session_type=payload.timer.session_type,
            ),
        )

    users = split_users(";".join(payload.users))
    append_presence_snapshot(
        get_presence_path(data_dir),
        PresenceSnapshot(timestamp=scrape_time, users_present=users),
    )

    activities_path = get_activities_path(data_dir)
    existing = load_existing_keys(activities_path)
    fresh: list[ActivityRecord] = []
    for item in payload.activities:
        if settings.is_system_actor(item.user):
            continue
        record = ActivityRecord(
            estimated_time=estimate_activity_time(scrape_time, item.time_ago),
            scrape_time=scrape_time,
            user=item.user.strip(),
            action=item.action.strip(),
            time_ago_raw=item.time_ago.strip(),
        )
        key = dedup_key(record)
        if key in existing:
            continue
        existing.add(key)
        fresh.append(record)
    added = append_activities(activities_path, fresh)

    logger.info(
        "Recorded scrape at %s: %d users present, %d/%d new activities",
        scrape_time.isoformat(),
        len(users),
        added,
        len(payload.activities),
    )
    return ScrapeResult(
        activities_seen=len(payload.activities),
        activities_added=added,
        users_present=len(users),
    )
