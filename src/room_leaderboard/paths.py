"""Helpers for locating the log and report files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs


APP_NAME = "RoomLeaderboard"
APP_AUTHOR = "RoomLeaderboard"

ACTIVITIES_FILE = "activities.csv"
PRESENCE_FILE = "presence.csv"
SNAPSHOTS_FILE = "snapshots.csv"
SESSION_LOG_FILE = "session_log.json"
LEADERBOARD_FILE = "leaderboard.json"
REPORT_FILE = "leaderboard.md"


def get_data_dir(override: Optional[Path] = None) -> Path:
    """Return the directory holding the raw logs and generated reports."""
    if override is not None:
        path = Path(override)
    else:
        dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
        path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_activities_path(data_dir: Path) -> Path:
    return Path(data_dir) / ACTIVITIES_FILE


def get_presence_path(data_dir: Path) -> Path:
    return Path(data_dir) / PRESENCE_FILE


def get_snapshots_path(data_dir: Path) -> Path:
    return Path(data_dir) / SNAPSHOTS_FILE


def get_session_log_path(data_dir: Path) -> Path:
    return Path(data_dir) / SESSION_LOG_FILE


def get_leaderboard_path(data_dir: Path) -> Path:
    return Path(data_dir) / LEADERBOARD_FILE


def get_report_path(data_dir: Path) -> Path:
    return Path(data_dir) / REPORT_FILE
