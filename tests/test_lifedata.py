from datetime import timezone, timedelta

import pytest

from backend.lifedata import (
    build_life_data,
    date_key,
    flatten_life_data,
    iter_day_items,
    local_date,
    parse_timestamp,
)


def _collections():
    return {
        "tasks": [
            {"id": "t1", "text": "Pay rent", "dueDate": "2024-05-02T09:00:00", "createdAt": "2024-05-01T08:00:00"},
        ],
        "expenses": [
            {"id": "e1", "category": "Other", "amount": 5, "description": "Gum", "createdAt": "2024-05-01T12:00:00"},
        ],
        "mood-logs": [
            {"id": "m1", "mood": "Bad", "createdAt": "2024-05-01T09:00:00"},
            {"id": "m2", "mood": "Good", "createdAt": "2024-05-01T21:00:00"},
        ],
        "habits": [{"id": "h1", "name": "Read", "completions": [], "createdAt": "2024-04-01T08:00:00"}],
        "credentials": [{"id": "c1", "website": "example.com", "username": "me"}],
    }


class TestTimestamps:
    def test_parse_accepts_zulu_suffix(self):
        assert parse_timestamp("2024-05-01T10:00:00Z").utcoffset() == timedelta(0)
        assert parse_timestamp("") is None
        assert parse_timestamp("garbage") is None

    def test_aware_timestamps_use_requested_zone(self):
        late_evening = "2024-05-01T23:30:00-02:00"
        assert date_key(late_evening, timezone.utc) == "2024-05-02"
        assert date_key(late_evening, timezone(timedelta(hours=-2))) == "2024-05-01"

    def test_naive_timestamps_keep_their_date(self):
        assert date_key("2024-05-01T23:30:00", timezone.utc) == "2024-05-01"
        assert local_date("2024-05-01").isoformat() == "2024-05-01"

    def test_date_key_rejects_garbage(self):
        with pytest.raises(ValueError):
            date_key("not a date")


class TestBuildLifeData:
    def test_tasks_bucket_by_due_date(self):
        life_data = build_life_data(_collections())
        assert [task["id"] for task in life_data["dailyData"]["2024-05-02"]["tasks"]] == ["t1"]
        assert life_data["dailyData"]["2024-05-01"]["tasks"] == []

    def test_day_singleton_keeps_latest(self):
        life_data = build_life_data(_collections())
        assert life_data["dailyData"]["2024-05-01"]["moodLog"]["id"] == "m2"

    def test_global_lists_and_default_routine(self):
        life_data = build_life_data(_collections())
        assert [habit["id"] for habit in life_data["habits"]] == ["h1"]
        assert life_data["goals"] == []
        assert life_data["weeklyRoutine"]["Monday"] == []

    def test_routine_is_merged_over_default_week(self):
        routine = {"Monday": [{"id": "r1", "time": "07:00", "text": "Stretch"}]}
        life_data = build_life_data({}, routine)
        assert life_data["weeklyRoutine"]["Monday"][0]["text"] == "Stretch"
        assert life_data["weeklyRoutine"]["Sunday"] == []

    def test_day_keys_are_sorted(self):
        life_data = build_life_data(_collections())
        assert list(life_data["dailyData"]) == ["2024-05-01", "2024-05-02"]


class TestFlatten:
    def test_flatten_inverts_build(self):
        collections = _collections()
        flattened = flatten_life_data(build_life_data(collections))
        assert [item["id"] for item in flattened["tasks"]] == ["t1"]
        assert [item["id"] for item in flattened["expenses"]] == ["e1"]
        # Only the surviving singleton per day comes back.
        assert [item["id"] for item in flattened["mood-logs"]] == ["m2"]
        assert [item["id"] for item in flattened["credentials"]] == ["c1"]
        assert flattened["goals"] == []

    def test_flatten_tolerates_partial_blobs(self):
        flattened = flatten_life_data({"dailyData": {"2024-05-01": {"tasks": [{"text": "x"}]}, "bad": None}})
        assert flattened["tasks"] == [{"text": "x"}]
        assert flattened["habits"] == []

    def test_iter_day_items_limits_days(self):
        life_data = build_life_data(_collections())
        assert iter_day_items(life_data, "tasks", ["2024-05-01"]) == []
        assert len(iter_day_items(life_data, "moodLog")) == 1
