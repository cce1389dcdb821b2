from datetime import timedelta

import pytest

from room_leaderboard.attribution import overlap_minutes
from room_leaderboard.config import EngineSettings
from room_leaderboard.engine import compute, compute_from_dir
from room_leaderboard.logs import LogTables
from room_leaderboard.models import ActivityRecord, PresenceSnapshot, TimerSnapshot
from room_leaderboard.reporting import leaderboard_to_dict, session_log_to_dict


def _tables(snapshot, activity, at):
    return LogTables(
        activities=[
            activity(0, "xia", "started a 25 minute work session"),
            activity(3, "yan", "joined the room"),
            activity(25, "xia", "started a 5 minute break"),
            activity(26, "cuckoo", "started a 25 minute work session"),
            activity(31, "yan", "said hello"),
        ],
        presence=[
            snapshot(-5, "xia"),
            snapshot(10, "xia", "yan"),
            snapshot(30, "xia", "yan"),
            snapshot(45, "yan"),
        ],
        timer_snapshots=[TimerSnapshot(at(45), True, "10:00", "work")],
    )


def test_compute_end_to_end(snapshot, activity, at):
    result = compute(_tables(snapshot, activity, at), now=at(50))

    assert [event.started_by for event in result.timer_events] == ["xia", "xia"]
    [yan_window] = result.windows["yan"]
    assert yan_window.join_time == at(3)
    assert yan_window.still_present

    users = {entry.user: entry for entry in result.leaderboard.users}
    assert [entry.user for entry in result.leaderboard.users] == ["xia", "yan"]
    assert users["xia"].pomodoro_count == 1
    assert users["yan"].pomodoro_count == 1
    assert round(users["yan"].work_minutes) == 22
    assert result.leaderboard.currently_present == ["yan"]
    assert result.leaderboard.latest_timer.session_type == "work"
    assert result.action_counts["join"] == 1


def test_recompute_is_deterministic(snapshot, activity, at):
    tables = _tables(snapshot, activity, at)
    first = compute(tables, now=at(50))
    second = compute(tables, now=at(50))

    assert leaderboard_to_dict(first.leaderboard) == leaderboard_to_dict(second.leaderboard)
    assert session_log_to_dict(first) == session_log_to_dict(second)


def test_settings_flow_through(snapshot, activity, at):
    settings = EngineSettings.from_minutes(grace_minutes=0)
    tables = _tables(snapshot, activity, at)
    users = {entry.user: entry for entry in compute(tables, settings, now=at(50)).leaderboard.users}
    assert users["yan"].pomodoro_count == 0


def test_empty_inputs_produce_valid_leaderboard(tmp_path, at):
    result = compute_from_dir(tmp_path, now=at(0))
    document = leaderboard_to_dict(result.leaderboard)

    assert document["users"] == []
    assert document["currently_present"] == []
    assert document["total_users"] == 0
    assert document["timer"] is None


def test_single_snapshot_without_timers(snapshot, at):
    result = compute(LogTables(presence=[snapshot(0, "ana")]), now=at(10))
    [entry] = result.leaderboard.users
    assert round(entry.presence_minutes) == 10
    assert entry.pomodoro_count == 0
    assert entry.currently_present


def test_naive_timestamps_are_read_as_utc(at):
    naive = at(0).replace(tzinfo=None)
    tables = LogTables(
        activities=[
            ActivityRecord(naive, naive, "xia", "started a 25 minute work session", "1 min ago")
        ],
        presence=[
            PresenceSnapshot(naive - timedelta(minutes=5), ("xia",)),
            PresenceSnapshot(naive + timedelta(minutes=10), ("xia",)),
        ],
        timer_snapshots=[TimerSnapshot(naive, True, "25:00", "work")],
    )
    result = compute(tables, now=naive + timedelta(minutes=30))

    [entry] = result.leaderboard.users
    assert entry.pomodoro_count == 1
    assert entry.work_minutes == pytest.approx(25)
    assert entry.presence_minutes == pytest.approx(35)
    assert result.timer_events[0].start_time == at(0)
    assert result.windows["xia"][0].leave_time == at(30)


def test_overlap_is_bounded_for_every_user_and_timer(snapshot, activity, at):
    tables = LogTables(
        activities=[
            activity(0, "xia", "started a 25 minute work session"),
            activity(25, "xia", "started a 5 minute break"),
            activity(30, "yan", "started a 25 minute work session"),
            activity(62, "zed", "started a 50 minute work session"),
        ],
        presence=[
            snapshot(-5, "xia"),
            snapshot(4, "xia", "yan"),
            snapshot(20, "yan"),
            snapshot(70, "yan", "zed"),
            snapshot(90, "zed"),
            snapshot(95),
        ],
    )
    result = compute(tables, now=at(120))

    assert result.timer_events
    for user, windows in result.windows.items():
        total = sum(window.duration_minutes for window in windows)
        for event in result.timer_events:
            minutes = overlap_minutes(windows, event.start_time, event.end_time)
            assert 0 <= minutes <= event.duration_minutes
            assert minutes <= total + 1e-9


def test_brief_latecomer_gets_count_without_minutes(snapshot, activity, at):
    tables = LogTables(
        activities=[
            activity(0, "xia", "started a 25 minute work session"),
            activity(4, "yan", "joined the room"),
        ],
        presence=[
            snapshot(-5, "xia"),
            snapshot(4.5, "xia", "yan"),
            snapshot(5, "xia"),
            snapshot(30),
        ],
    )
    users = {entry.user: entry for entry in compute(tables, now=at(40)).leaderboard.users}

    yan = users["yan"]
    assert yan.pomodoro_count == 1
    assert yan.work_minutes == pytest.approx(59 / 60)
    assert yan.work_minutes < 1
