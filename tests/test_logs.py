from datetime import datetime, timezone

from room_leaderboard.logs import (
    append_presence_snapshot,
    append_timer_snapshot,
    format_timestamp,
    load_tables,
    parse_timestamp,
    read_activities,
    read_presence,
    read_timer_snapshots,
    sanitize_field,
    split_users,
)
from room_leaderboard.models import PresenceSnapshot, TimerSnapshot


def test_timestamp_format_matches_collector_output():
    value = datetime(2024, 5, 1, 9, 30, 5, 123456, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2024-05-01T09:30:05.123Z"
    assert parse_timestamp("2024-05-01T09:30:05.123Z") == value.replace(microsecond=123000)


def test_naive_timestamps_are_utc():
    assert parse_timestamp("2024-05-01T09:30:00").tzinfo == timezone.utc


def test_sanitize_field():
    assert sanitize_field(" a, b\nc ") == "a; b c"


def test_split_users_keeps_order_and_drops_duplicates():
    assert split_users("ben;ana;;ben; cy ") == ("ben", "ana", "cy")
    assert split_users("") == ()


def test_read_presence(tmp_path, at):
    path = tmp_path / "presence.csv"
    path.write_text(
        "timestamp,user_count,users\n"
        '2024-05-01T09:00:00.000Z,2,"ana;ben"\n'
        '2024-05-01T09:10:00.000Z,0,""\n'
        "2024-05-01T09:20:00.000Z,1\n"
        '2024-05-01T09:30:00.000Z,1,"Doe, Jane"\n',
        encoding="utf-8",
    )
    snapshots = read_presence(path)
    assert snapshots == [
        PresenceSnapshot(at(0), ("ana", "ben")),
        PresenceSnapshot(at(10), ()),
        PresenceSnapshot(at(30), ("Doe, Jane",)),
    ]


def test_read_activities_skips_bad_rows(tmp_path, at):
    path = tmp_path / "activities.csv"
    path.write_text(
        "estimated_time,scrape_time,user,action,time_ago_raw\n"
        '2024-05-01T09:00:00.000Z,2024-05-01T09:05:00.000Z,ana,said "hi",5 min ago\n'
        "2024-05-01T09:00:00.000Z,2024-05-01T09:05:00.000Z,ana,extra,column,5 min ago\n"
        "\n",
        encoding="utf-8",
    )
    [record] = read_activities(path)
    assert record.action == 'said "hi"'
    assert record.estimated_time == at(0)
    assert record.scrape_time == at(5)


def test_timer_snapshots_round_trip(tmp_path, at):
    path = tmp_path / "snapshots.csv"
    append_timer_snapshot(path, TimerSnapshot(at(0), True, "24:13", "work"))
    append_timer_snapshot(path, TimerSnapshot(at(5), False, "00:00", "break"))

    assert path.read_text(encoding="utf-8").splitlines()[0] == (
        "timestamp,timer_running,timer_value,session_type"
    )
    assert [(s.timer_running, s.session_type) for s in read_timer_snapshots(path)] == [
        (True, "work"),
        (False, "break"),
    ]


def test_presence_written_by_append_is_readable(tmp_path, at):
    path = tmp_path / "presence.csv"
    append_presence_snapshot(path, PresenceSnapshot(at(0), ("ana", "ben")))
    assert read_presence(path) == [PresenceSnapshot(at(0), ("ana", "ben"))]


def test_missing_logs_are_empty(tmp_path):
    tables = load_tables(tmp_path)
    assert tables.activities == []
    assert tables.presence == []
    assert tables.timer_snapshots == []
