import copy
import json
import threading
from datetime import datetime
from uuid import uuid4

import pytest

from backend.analytics import goal_progress
from backend.lifedata import default_routine, flatten_life_data
from backend.schemas import ENTITIES
from dashboard.data import api_client
from dashboard.data.api_client import ApiError
from dashboard.data.life_data import LOCAL_ID_PREFIX, LifeDataStore, SyncError
from dashboard.services import ai_client

MONDAY_8AM = datetime(2024, 5, 13, 8, 0)


class RecordingResponse:
    ok = True
    status_code = 200

    def __init__(self, url):
        self.url = url

    def json(self):
        if self.url.endswith("/api/routine"):
            return {"weeklyRoutine": default_routine()}
        return []


class RecordingSession:
    """Captures outgoing requests in place of the pooled requests session."""

    def __init__(self):
        self.sent = []

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.sent.append((url, (headers or {}).get("Authorization"), threading.get_ident()))
        return RecordingResponse(url)


class FakeApi:
    """In-memory stand-in for the backend's document routes."""

    def __init__(self):
        self.collections = {entity.slug: [] for entity in ENTITIES}
        self.routine = {"weeklyRoutine": default_routine()}
        self.calls = []
        self.tokens = []
        self.fail_on = set()

    def seed(self, slug, **fields):
        doc = {"id": uuid4().hex, **fields}
        self.collections[slug].append(doc)
        return doc

    def __call__(self, method, path, params=None, json=None, timeout=10, token=None):
        self.calls.append((method, path, copy.deepcopy(json)))
        self.tokens.append(token)
        if method in self.fail_on:
            raise ApiError(500, "Internal error")
        parts = path.strip("/").split("/")[1:]
        if parts == ["routine"]:
            if method == "POST":
                self.routine = {"id": "routine", "weeklyRoutine": copy.deepcopy(json["weeklyRoutine"])}
            return copy.deepcopy(self.routine)
        if parts == ["import"]:
            flattened = flatten_life_data(json)
            self.collections = {
                slug: [{**item, "id": uuid4().hex} for item in flattened.get(slug, [])]
                for slug in self.collections
            }
            return {"message": "Data imported successfully"}
        items = self.collections[parts[0]]
        if len(parts) == 1:
            if method == "GET":
                return copy.deepcopy(items)
            doc = {"id": uuid4().hex, **json}
            items.append(doc)
            return copy.deepcopy(doc)
        doc = next((item for item in items if item["id"] == parts[1]), None)
        if doc is None:
            raise ApiError(404, "Document not found")
        if method == "PUT":
            doc.update(json)
            return copy.deepcopy(doc)
        if method == "DELETE":
            items.remove(doc)
            return None
        return copy.deepcopy(doc)

    def methods(self):
        return [method for method, _, _ in self.calls]


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def store(api):
    life = LifeDataStore(api=api, clock=lambda: MONDAY_8AM)
    life.load()
    api.calls.clear()
    return life


class TestLoad:
    def test_load_folds_collections(self, api):
        api.seed("tasks", text="Stretch", completed=False, dueDate="2024-05-13T18:00:00", createdAt="2024-05-13")
        api.seed("habits", name="Read", completions=[], createdAt="2024-05-01T08:00:00")
        api.routine = {"id": "r", "weeklyRoutine": {**default_routine(), "Monday": [{"id": "a", "time": "07:00", "text": "Run"}]}}
        life = LifeDataStore(api=api, clock=lambda: MONDAY_8AM)
        life.load()
        assert life.loaded
        assert [task["text"] for task in life.day()["tasks"]] == ["Stretch"]
        assert [habit["name"] for habit in life.habits] == ["Read"]
        assert life.weekly_routine["Monday"][0]["text"] == "Run"

    def test_load_failure_raises_sync_error(self, api):
        api.fail_on.add("GET")
        life = LifeDataStore(api=api, clock=lambda: MONDAY_8AM)
        with pytest.raises(SyncError):
            life.load()
        assert not life.loaded

    def test_load_sends_script_thread_token_from_workers(self, monkeypatch):
        script_thread = threading.get_ident()
        session = RecordingSession()
        monkeypatch.delenv("API_BASE_URL", raising=False)
        monkeypatch.setattr(api_client, "_SESSION", session)
        monkeypatch.setattr(api_client, "_SECRET_GETTER", lambda path, default=None: default)
        # Mirrors st.session_state, which is empty outside the script thread.
        monkeypatch.setattr(
            api_client,
            "_TOKEN_GETTER",
            lambda: "abc" if threading.get_ident() == script_thread else None,
        )

        life = LifeDataStore(api=api_client.request, clock=lambda: MONDAY_8AM)
        life.load()

        assert life.loaded
        assert len(session.sent) == len(ENTITIES) + 1
        assert {auth for _, auth, _ in session.sent} == {"Bearer abc"}
        assert all(thread != script_thread for _, _, thread in session.sent)

    def test_fake_api_receives_token(self, api, monkeypatch):
        monkeypatch.setattr(api_client, "_TOKEN_GETTER", lambda: "abc")
        LifeDataStore(api=api, clock=lambda: MONDAY_8AM).load()
        assert set(api.tokens) == {"abc"}


class TestOptimisticMutations:
    def test_add_task_reconciles_server_id(self, store, api):
        task = store.add_task("Gym", datetime(2024, 5, 13, 18, 0))
        assert not task["id"].startswith(LOCAL_ID_PREFIX)
        assert [item["id"] for item in store.day()["tasks"]] == [task["id"]]
        assert api.collections["tasks"][0]["createdAt"] == "2024-05-13"

    def test_failed_create_is_rolled_back(self, store, api):
        before = copy.deepcopy(store.data)
        api.fail_on.add("POST")
        with pytest.raises(SyncError):
            store.add_expense(250, "Lunch", "Food & Drinks")
        assert store.data == before
        assert store.day().get("expenses", []) == []

    def test_failed_toggle_restores_previous_state(self, store, api):
        task = store.add_task("Gym", datetime(2024, 5, 13, 18, 0))
        api.fail_on.add("PUT")
        with pytest.raises(SyncError):
            store.toggle_task(task["id"])
        assert store.day()["tasks"][0]["completed"] is False

    def test_toggle_task(self, store, api):
        task = store.add_task("Gym", datetime(2024, 5, 13, 18, 0))
        store.toggle_task(task["id"])
        assert store.day()["tasks"][0]["completed"] is True
        assert api.calls[-1] == ("PUT", f"/api/tasks/{task['id']}", {"completed": True})

    def test_rescheduled_task_moves_bucket(self, store):
        task = store.add_task("Gym", datetime(2024, 5, 13, 18, 0))
        store.update_task(task["id"], dueDate="2024-05-14T18:00:00")
        assert store.day().get("tasks") == []
        assert [item["id"] for item in store.day("2024-05-14")["tasks"]] == [task["id"]]

    def test_delete_unknown_item_makes_no_call(self, store, api):
        with pytest.raises(SyncError):
            store.delete_task("missing")
        assert api.calls == []

    def test_delete(self, store, api):
        log = store.add_time_log("Reading", 30)
        store.delete_time_log(log["id"])
        assert store.day()["timeLogs"] == []
        assert api.collections["time-logs"] == []


class TestDaySingletons:
    def test_mood_is_logged_once_per_day(self, store, api):
        store.log_mood("Bad")
        store.log_mood("Good")
        assert store.day()["moodLog"]["mood"] == "Good"
        assert len(api.collections["mood-logs"]) == 1
        assert api.methods() == ["POST", "PUT"]

    def test_blank_journal_is_not_created(self, store, api):
        assert store.save_journal_entry("   ") is None
        assert api.calls == []

    def test_journal_updates_existing_entry(self, store, api):
        store.save_journal_entry("Morning pages")
        store.save_journal_entry("Evening pages")
        assert store.day()["journalEntry"]["text"] == "Evening pages"
        assert len(api.collections["journal-entries"]) == 1


class TestHabitsAndGoals:
    def test_toggle_habit_today(self, store, api):
        habit = store.add_habit("Read")
        store.toggle_habit_today(habit["id"])
        assert store.habits[0]["completions"] == [MONDAY_8AM.isoformat()]
        store.toggle_habit_today(habit["id"])
        assert store.habits[0]["completions"] == []

    def test_milestones(self, store):
        goal = store.add_goal("Marathon", "Spring race", "2024-10-01")
        goal = store.add_milestone(goal["id"], "Run 10k")
        milestone_id = goal["milestones"][0]["id"]
        assert goal_progress(store.goals[0]) == 0
        store.toggle_milestone(goal["id"], milestone_id)
        assert goal_progress(store.goals[0]) == 100
        store.delete_milestone(goal["id"], milestone_id)
        assert store.goals[0]["milestones"] == []


class TestRoutine:
    def test_routine_tasks_stay_sorted(self, store, api):
        store.add_routine_task("Monday", "18:00", "Gym")
        store.add_routine_task("Monday", "07:00", "Meditate")
        assert [task["time"] for task in store.weekly_routine["Monday"]] == ["07:00", "18:00"]
        assert [task["text"] for task in api.routine["weeklyRoutine"]["Monday"]] == ["Meditate", "Gym"]

    def test_update_and_delete_routine_task(self, store):
        routine = store.add_routine_task("Friday", "09:00", "Plan week")
        task_id = routine["Friday"][0]["id"]
        store.update_routine_task("Friday", task_id, "08:30", "Plan the week")
        assert store.weekly_routine["Friday"][0]["text"] == "Plan the week"
        store.delete_routine_task("Friday", task_id)
        assert store.weekly_routine["Friday"] == []

    def test_apply_routine_creates_future_tasks_once(self, store, api):
        store.add_routine_task("Monday", "07:00", "Meditate")
        store.add_routine_task("Monday", "09:00", "Gym")
        store.add_routine_task("Tuesday", "09:00", "Swim")

        assert store.apply_routine_for_today() == 1
        assert [task["text"] for task in store.day()["tasks"]] == ["Gym"]
        assert store.day()["tasks"][0]["dueDate"] == "2024-05-13T09:00:00"

        assert store.apply_routine_for_today() == 0
        assert len(api.collections["tasks"]) == 1

    def test_apply_routine_skips_past_times(self, store):
        store.add_routine_task("Monday", "09:00", "Gym")
        assert store.apply_routine_for_today(datetime(2024, 5, 13, 10, 0)) == 0
        assert store.tasks == []


class TestTransfer:
    def test_import_reloads(self, store, api):
        blob = {
            "dailyData": {
                "2024-05-13": {"tasks": [{"text": "Imported", "completed": False, "dueDate": "2024-05-13T12:00:00"}]},
            },
            "habits": [{"name": "Journal", "completions": []}],
        }
        result = store.import_data(json.dumps(blob))
        assert result["message"] == "Data imported successfully"
        assert [task["text"] for task in store.day()["tasks"]] == ["Imported"]
        assert [habit["name"] for habit in store.habits] == ["Journal"]

    def test_failed_import_keeps_data(self, store, api):
        store.add_habit("Read")
        before = copy.deepcopy(store.data)
        api.fail_on.add("POST")
        with pytest.raises(SyncError):
            store.import_data({"dailyData": {}})
        assert store.data == before


class TestAiClient:
    def test_returns_reply_field(self):
        def request(method, path, json=None, timeout=10):
            assert path == "/api/ai/summary"
            return {"summary": "Nice day."}

        assert ai_client.daily_summary({}, request=request) == "Nice day."

    def test_falls_back_when_backend_fails(self):
        def request(method, path, json=None, timeout=10):
            raise ApiError(0, "Backend unreachable")

        assert ai_client.daily_summary({}, request=request) == ai_client.SUMMARY_FALLBACK
        assert ai_client.chat_reply([], {}, request=request) == {
            "role": "model",
            "content": ai_client.CHAT_MESSAGE_FALLBACK,
        }
