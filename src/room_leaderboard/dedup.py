"""Stable identities for activity feed entries.

The feed reports the age of an entry ("5 min ago", "2 hours ago") with a
precision that degrades as the entry gets older, so the same entry seen on two
scrapes can be assigned two different estimated times. Keys bucket the
estimated time to a granularity matching that precision.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from pathlib import Path

from .logs import format_timestamp, read_activities, sanitize_field, to_utc
from .models import ActivityRecord

_TIME_AGO_PATTERN = re.compile(r"\b(\d+|an?)\s*(sec|min|hour|day)", re.IGNORECASE)

_UNIT_SECONDS: dict[str, int] = {
    "sec": 1,
    "min": 60,
    "hour": 60 * 60,
    "day": 24 * 60 * 60,
}

_COARSE_MARKERS = ("hour", "day")
_FINE_BUCKET_MINUTES = 30


def is_coarse(time_ago_raw: str) -> bool:
    lowered = time_ago_raw.lower()
    return any(marker in lowered for marker in _COARSE_MARKERS)


def round_for_dedup(estimated_time: datetime, time_ago_raw: str = "") -> datetime:
    """Floor to the hour for coarse ages, otherwise to the half hour."""
    value = to_utc(estimated_time).replace(second=0, microsecond=0)
    if is_coarse(time_ago_raw):
        return value.replace(minute=0)
    return value.replace(minute=(value.minute // _FINE_BUCKET_MINUTES) * _FINE_BUCKET_MINUTES)


def dedup_key_for(
    estimated_time: datetime, user: str, action: str, time_ago_raw: str = ""
) -> str:
    rounded = format_timestamp(round_for_dedup(estimated_time, time_ago_raw))
    return f"{rounded}|{sanitize_field(user)}|{sanitize_field(action)}"


def dedup_key(record: ActivityRecord) -> str:
    return dedup_key_for(record.estimated_time, record.user, record.action, record.time_ago_raw)


def load_existing_keys(path: Path) -> set[str]:
    """Rebuild the keys of every well-formed row already in the activities log."""
    return {dedup_key(record) for record in read_activities(path)}


def parse_time_ago(text: str) -> timedelta:
    """Convert "N sec/min/hour/day ago" phrasing into an age; unknown text is zero."""
    if not text:
        return timedelta(0)
    match = _TIME_AGO_PATTERN.search(text)
    if not match:
        return timedelta(0)
    amount_text, unit = match.group(1).lower(), match.group(2).lower()
    amount = 1 if amount_text in ("a", "an") else int(amount_text)
    return timedelta(seconds=amount * _UNIT_SECONDS[unit])


def estimate_activity_time(scrape_time: datetime, time_ago: str) -> datetime:
    estimated = to_utc(scrape_time) - parse_time_ago(time_ago)
    return estimated.replace(second=0, microsecond=0)
