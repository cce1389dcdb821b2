import pytest
from pydantic import ValidationError

from room_leaderboard.ingest import ScrapePayload, record_scrape
from room_leaderboard.logs import read_activities, read_presence, read_timer_snapshots


def _payload(scrape_time, age_offset=0, **extra):
    return ScrapePayload.model_validate(
        {
            "scrape_time": scrape_time,
            "users": ["ana", "ben"],
            "activities": [
                {"user": "ana", "action": "started a 25 minute work session", "time_ago": f"{5 + age_offset} min ago"},
                {"user": "ben", "action": "joined the room", "time_ago": f"{2 + age_offset} min ago"},
                {"user": "cuckoo", "action": "Welcome, everyone", "time_ago": "1 min ago"},
            ],
            "timer": {"running": True, "value": "20:00", "session_type": "work"},
            **extra,
        }
    )


def test_record_scrape_appends_all_logs(data_dir):
    outcome = record_scrape(data_dir, _payload("2024-05-01T10:10:30.000Z"))

    assert (outcome.activities_seen, outcome.activities_added, outcome.users_present) == (3, 2, 2)
    [presence] = read_presence(data_dir / "presence.csv")
    assert presence.users_present == ("ana", "ben")
    [timer] = read_timer_snapshots(data_dir / "snapshots.csv")
    assert timer.timer_running and timer.timer_value == "20:00"
    records = read_activities(data_dir / "activities.csv")
    assert [record.user for record in records] == ["ana", "ben"]
    assert records[0].estimated_time.minute == 5
    assert records[0].estimated_time.second == 0


def test_rescraping_does_not_duplicate_activities(data_dir):
    record_scrape(data_dir, _payload("2024-05-01T10:10:30.000Z"))
    outcome = record_scrape(data_dir, _payload("2024-05-01T10:13:30.000Z", age_offset=3))

    assert outcome.activities_added == 0
    assert len(read_activities(data_dir / "activities.csv")) == 2
    assert len(read_presence(data_dir / "presence.csv")) == 2


def test_scrape_without_timer_state(data_dir):
    payload = ScrapePayload.model_validate({"scrape_time": "2024-05-01T10:00:00Z"})
    outcome = record_scrape(data_dir, payload)

    assert outcome.activities_added == 0
    assert not (data_dir / "snapshots.csv").exists()
    assert read_presence(data_dir / "presence.csv")[0].users_present == ()


def test_payload_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        _payload("2024-05-01T10:10:30.000Z", room="other")
