"""Render engine results as JSON documents, a markdown table and console output."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .engine import EngineResult
from .logs import format_timestamp
from .models import Leaderboard, PresenceWindow, TimerEvent, UserStats
from .paths import get_leaderboard_path, get_report_path, get_session_log_path
from .stats import format_duration

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return format_timestamp(value) if value is not None else None


def leaderboard_to_dict(leaderboard: Leaderboard) -> Dict[str, Any]:
    timer = leaderboard.latest_timer
    return {
        "generated": _iso(leaderboard.generated_at),
        "currently_present": list(leaderboard.currently_present),
        "total_users": leaderboard.total_users,
        "total_pomodoros": leaderboard.total_pomodoros,
        "total_work_minutes": round(leaderboard.total_work_minutes),
        "work_timers": leaderboard.work_timer_count,
        "break_timers": leaderboard.break_timer_count,
        "timer": (
            {
                "observed_at": _iso(timer.timestamp),
                "running": timer.timer_running,
                "value": timer.timer_value,
                "session_type": timer.session_type,
            }
            if timer
            else None
        ),
        "users": [
            _user_entry(rank, stats)
            for rank, stats in enumerate(leaderboard.users, start=1)
        ],
    }


def _user_entry(rank: int, stats: UserStats) -> Dict[str, Any]:
    return {
        "rank": rank,
        "user": stats.user,
        "currently_present": stats.currently_present,
        "total_presence_minutes": round(stats.presence_minutes),
        "total_work_minutes": round(stats.work_minutes),
        "total_break_minutes": round(stats.break_minutes),
        "pomodoro_count": stats.pomodoro_count,
        "break_count": stats.break_count,
        "avg_pomodoro_minutes": round(stats.avg_pomodoro_minutes),
        "avg_break_minutes": round(stats.avg_break_minutes),
        "first_seen": _iso(stats.first_seen),
        "last_seen": _iso(stats.last_seen),
    }


def session_log_to_dict(result: EngineResult) -> Dict[str, Any]:
    """Full intermediate state, kept for inspection only."""
    return {
        "last_updated": _iso(result.leaderboard.generated_at),
        "event_count": len(result.timer_events),
        "action_counts": dict(result.action_counts),
        "timer_events": [_timer_event_entry(event) for event in result.timer_events],
        "windows": {
            user: [_window_entry(window) for window in windows]
            for user, windows in result.windows.items()
        },
        "user_stats": {
            stats.user: {
                "presence_minutes": round(stats.presence_minutes, 3),
                "work_minutes": round(stats.work_minutes, 3),
                "break_minutes": round(stats.break_minutes, 3),
                "pomodoro_count": stats.pomodoro_count,
                "break_count": stats.break_count,
                "first_seen": _iso(stats.first_seen),
                "last_seen": _iso(stats.last_seen),
                "currently_present": stats.currently_present,
            }
            for stats in result.leaderboard.users
        },
    }


def _timer_event_entry(event: TimerEvent) -> Dict[str, Any]:
    return {
        "start_time": _iso(event.start_time),
        "end_time": _iso(event.end_time),
        "type": event.timer_type.value,
        "duration_minutes": event.duration_minutes,
        "started_by": event.started_by,
    }


def _window_entry(window: PresenceWindow) -> Dict[str, Any]:
    return {
        "join_time": _iso(window.join_time),
        "leave_time": _iso(window.leave_time),
        "still_present": window.still_present,
        "minutes": round(window.duration_minutes, 3),
    }


def render_markdown(document: Dict[str, Any]) -> str:
    """Build the ranked report from a leaderboard document alone."""
    lines = ["# Room leaderboard", "", f"Generated: {document.get('generated')}", ""]
    present = document.get("currently_present") or []
    if present:
        lines.append(f"Currently present: {', '.join(present)}")
    else:
        lines.append("No one currently in room")
    lines.append("")
    lines.append(
        f"{document.get('total_users', 0)} users, "
        f"{document.get('total_pomodoros', 0)} pomodoros, "
        f"{format_duration(document.get('total_work_minutes', 0))} of work"
    )
    lines.append("")

    users = document.get("users") or []
    if not users:
        lines.append("No activity recorded yet.")
        return "\n".join(lines) + "\n"

    lines.append("| # | User | Presence | Pomodoros | Work | Breaks | Break time | Avg pomodoro |")
    lines.append("|---|------|----------|-----------|------|--------|------------|--------------|")
    for entry in users:
        name = entry["user"].replace("|", "\\|")
        if entry.get("currently_present"):
            name += " (online)"
        lines.append(
            f"| {entry['rank']} | {name} "
            f"| {format_duration(entry['total_presence_minutes'])} "
            f"| {entry['pomodoro_count']} "
            f"| {format_duration(entry['total_work_minutes'])} "
            f"| {entry['break_count']} "
            f"| {format_duration(entry['total_break_minutes'])} "
            f"| {format_duration(entry['avg_pomodoro_minutes'])} |"
        )
    return "\n".join(lines) + "\n"


def write_outputs(data_dir: Path, result: EngineResult, *, markdown: bool = True) -> list[Path]:
    """Overwrite the session log, leaderboard and (optionally) the markdown report."""
    document = leaderboard_to_dict(result.leaderboard)
    written = [
        _write_json(get_session_log_path(data_dir), session_log_to_dict(result)),
        _write_json(get_leaderboard_path(data_dir), document),
    ]
    if markdown:
        report_path = get_report_path(data_dir)
        report_path.write_text(render_markdown(document), encoding="utf-8")
        written.append(report_path)
    for path in written:
        logger.info("Wrote %s", path)
    return written


def _write_json(path: Path, payload: Dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path


class SummaryPrinter:
    """Render a human-readable summary in the console."""

    def __init__(self, leaderboard: Leaderboard) -> None:
        self.leaderboard = leaderboard

    def print_summary(self, limit: int = 5) -> None:
        leaderboard = self.leaderboard
        print("Currently present")
        print("-" * 40)
        if leaderboard.currently_present:
            print(", ".join(leaderboard.currently_present))
        else:
            print("No one currently in room")
        print()

        if not leaderboard.users:
            print("No activity recorded yet.")
            return

        print(f"Top {limit} by presence time")
        print("-" * 40)
        for rank, stats in enumerate(leaderboard.users[:limit], start=1):
            status = " (online)" if stats.currently_present else ""
            print(
                f"{rank}. {stats.user}{status}: "
                f"{format_duration(stats.presence_minutes)} presence, "
                f"{stats.pomodoro_count} pomodoros"
            )
