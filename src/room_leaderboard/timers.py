"""Extract timer-start events from the activity feed."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable, Sequence

from .classifier import DEFAULT_RULES, ActionKind, ActionRule, classify_action
from .config import EngineSettings
from .models import ActivityRecord, TimerEvent, TimerType

logger = logging.getLogger(__name__)

JOIN_MARKER = "joined"

_TIMER_TYPES = {
    ActionKind.WORK_START: TimerType.WORK,
    ActionKind.BREAK_START: TimerType.BREAK,
}


def extract_timer_events(
    records: Iterable[ActivityRecord],
    settings: EngineSettings | None = None,
    rules: Sequence[ActionRule] = DEFAULT_RULES,
) -> list[TimerEvent]:
    """Return work/break starts sorted by start time (ties keep feed order)."""
    settings = settings or EngineSettings()
    events: list[TimerEvent] = []
    for record in records:
        if settings.is_system_actor(record.user):
            continue
        action = classify_action(record.action, rules)
        timer_type = _TIMER_TYPES.get(action.kind)
        if timer_type is None or not action.duration_minutes:
            continue
        events.append(
            TimerEvent(
                start_time=record.estimated_time,
                timer_type=timer_type,
                duration_minutes=action.duration_minutes,
                started_by=record.user,
            )
        )
    events.sort(key=lambda event: event.start_time)
    logger.debug("Extracted %d timer events", len(events))
    return events


def collect_join_events(
    records: Iterable[ActivityRecord],
    settings: EngineSettings | None = None,
) -> dict[str, list[datetime]]:
    """Map each user to the sorted, distinct times the feed reports them joining.

    Any text mentioning "joined" counts, even when a timer rule also claims it.
    """
    settings = settings or EngineSettings()
    joins: dict[str, set[datetime]] = {}
    for record in records:
        if settings.is_system_actor(record.user):
            continue
        if JOIN_MARKER in record.action.lower():
            joins.setdefault(record.user, set()).add(record.estimated_time)
    return {user: sorted(times) for user, times in joins.items()}


def count_actions(
    records: Iterable[ActivityRecord],
    settings: EngineSettings | None = None,
    rules: Sequence[ActionRule] = DEFAULT_RULES,
) -> dict[str, int]:
    settings = settings or EngineSettings()
    counts = Counter(
        classify_action(record.action, rules).kind
        for record in records
        if not settings.is_system_actor(record.user)
    )
    return {kind.value: counts.get(kind, 0) for kind in ActionKind}
