"""Delimited log files holding the raw activity, presence and timer records."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from .models import ActivityRecord, PresenceSnapshot, TimerSnapshot
from .paths import get_activities_path, get_presence_path, get_snapshots_path

logger = logging.getLogger(__name__)

ACTIVITY_COLUMNS = ("estimated_time", "scrape_time", "user", "action", "time_ago_raw")
PRESENCE_COLUMNS = ("timestamp", "user_count", "users")
SNAPSHOT_COLUMNS = ("timestamp", "timer_running", "timer_value", "session_type")

USER_SEPARATOR = ";"


@dataclass(slots=True)
class LogTables:
    """The three raw logs, parsed and held in memory."""

    activities: list[ActivityRecord] = field(default_factory=list)
    presence: list[PresenceSnapshot] = field(default_factory=list)
    timer_snapshots: list[TimerSnapshot] = field(default_factory=list)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    value = to_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sanitize_field(value: str) -> str:
    """Make a free-text value safe for the comma-delimited activity log."""
    return " ".join(value.replace(",", ";").splitlines()).strip()


def load_tables(data_dir: Path) -> LogTables:
    tables = LogTables(
        activities=read_activities(get_activities_path(data_dir)),
        presence=read_presence(get_presence_path(data_dir)),
        timer_snapshots=read_timer_snapshots(get_snapshots_path(data_dir)),
    )
    logger.info(
        "Loaded %d activities, %d presence snapshots, %d timer snapshots from %s",
        len(tables.activities),
        len(tables.presence),
        len(tables.timer_snapshots),
        data_dir,
    )
    return tables


def read_activities(path: Path) -> list[ActivityRecord]:
    records: list[ActivityRecord] = []
    # Actions are written unquoted, so quote characters are literal text.
    for line_no, row in _iter_rows(path, len(ACTIVITY_COLUMNS), quoting=csv.QUOTE_NONE):
        try:
            estimated = parse_timestamp(row[0])
            scraped = parse_timestamp(row[1])
        except ValueError:
            logger.debug("Skipping %s:%d with an invalid timestamp", path.name, line_no)
            continue
        records.append(
            ActivityRecord(
                estimated_time=estimated,
                scrape_time=scraped,
                user=row[2].strip(),
                action=row[3].strip(),
                time_ago_raw=row[4].strip(),
            )
        )
    return records


def read_presence(path: Path) -> list[PresenceSnapshot]:
    snapshots: list[PresenceSnapshot] = []
    for line_no, row in _iter_rows(path, len(PRESENCE_COLUMNS)):
        try:
            timestamp = parse_timestamp(row[0])
        except ValueError:
            logger.debug("Skipping %s:%d with an invalid timestamp", path.name, line_no)
            continue
        snapshots.append(
            PresenceSnapshot(timestamp=timestamp, users_present=split_users(row[2]))
        )
    return snapshots


def read_timer_snapshots(path: Path) -> list[TimerSnapshot]:
    snapshots: list[TimerSnapshot] = []
    for line_no, row in _iter_rows(path, len(SNAPSHOT_COLUMNS)):
        try:
            timestamp = parse_timestamp(row[0])
        except ValueError:
            logger.debug("Skipping %s:%d with an invalid timestamp", path.name, line_no)
            continue
        snapshots.append(
            TimerSnapshot(
                timestamp=timestamp,
                timer_running=row[1].strip().lower() == "true",
                timer_value=row[2].strip() or "00:00",
                session_type=row[3].strip() or "unknown",
            )
        )
    return snapshots


def split_users(value: str) -> tuple[str, ...]:
    names = (name.strip() for name in value.split(USER_SEPARATOR))
    return tuple(dict.fromkeys(name for name in names if name))


def append_activities(path: Path, records: Iterable[ActivityRecord]) -> int:
    ensure_log(path, ACTIVITY_COLUMNS)
    lines = [
        ",".join(
            (
                format_timestamp(record.estimated_time),
                format_timestamp(record.scrape_time),
                sanitize_field(record.user),
                sanitize_field(record.action),
                sanitize_field(record.time_ago_raw),
            )
        )
        + "\n"
        for record in records
    ]
    if lines:
        with path.open("a", encoding="utf-8", newline="") as handle:
            handle.writelines(lines)
    return len(lines)


def append_presence_snapshot(path: Path, snapshot: PresenceSnapshot) -> None:
    ensure_log(path, PRESENCE_COLUMNS)
    with path.open("a", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        writer.writerow(
            (
                format_timestamp(snapshot.timestamp),
                len(snapshot.users_present),
                USER_SEPARATOR.join(snapshot.users_present),
            )
        )


def append_timer_snapshot(path: Path, snapshot: TimerSnapshot) -> None:
    ensure_log(path, SNAPSHOT_COLUMNS)
    with path.open("a", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(
            (
                format_timestamp(snapshot.timestamp),
                "true" if snapshot.timer_running else "false",
                snapshot.timer_value,
                snapshot.session_type,
            )
        )


def ensure_log(path: Path, columns: tuple[str, ...]) -> None:
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(",".join(columns) + "\n", encoding="utf-8")


def _iter_rows(
    path: Path, expected_columns: int, *, quoting: int = csv.QUOTE_MINIMAL
) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_no, row)`` for well-formed data rows; header excluded."""
    if not path.exists():
        logger.debug("Log %s does not exist; treating it as empty", path)
        return
    with path.open(newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle, quoting=quoting)
        next(reader, None)
        for row in reader:
            line_no = reader.line_num
            if not row or not any(cell.strip() for cell in row):
                continue
            if len(row) != expected_columns:
                logger.debug(
                    "Skipping %s:%d with %d columns (expected %d)",
                    path.name,
                    line_no,
                    len(row),
                    expected_columns,
                )
                continue
            yield line_no, row
