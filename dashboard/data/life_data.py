"""Client-side LifeData store.

Loads every collection from the API, folds them into the date-keyed view
model and applies mutations optimistically. A failed API call restores the
snapshot taken before the change and raises :class:`SyncError`.
"""

from __future__ import annotations

import copy
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from backend.lifedata import (
    DAY_SINGLETON_KEYS,
    GLOBAL_LIST_KEYS,
    all_tasks,
    bucket_date_field,
    build_life_data,
    date_key,
    default_routine,
    empty_life_data,
    fold_item,
    local_date,
)
from backend.schemas import DAYS_OF_WEEK, ENTITIES, ENTITIES_BY_SLUG
from dashboard.data import api_client
from dashboard.data.api_client import ApiError

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX = "local-"


class SyncError(RuntimeError):
    pass


def _sorted_routine(tasks):
    return sorted(tasks or [], key=lambda task: task.get("time", ""))


class LifeDataStore:
    def __init__(
        self,
        api: Callable[..., Any] | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
        max_workers: int = 6,
    ):
        self._api = api or api_client.request
        self._clock = clock
        self.tz = tz
        self.max_workers = max_workers
        self.data: Dict[str, Any] = empty_life_data()
        self.loaded = False

    # -- reading -----------------------------------------------------------

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        if self.tz is not None:
            return datetime.now(self.tz)
        return datetime.now().astimezone()

    def today_key(self) -> str:
        return date_key(self.now(), self.tz)

    def day(self, key: str | None = None) -> Dict[str, Any]:
        return (self.data.get("dailyData") or {}).get(key or self.today_key()) or {}

    @property
    def tasks(self) -> List[dict]:
        return all_tasks(self.data)

    @property
    def habits(self) -> List[dict]:
        return self.data.get("habits") or []

    @property
    def goals(self) -> List[dict]:
        return self.data.get("goals") or []

    @property
    def credentials(self) -> List[dict]:
        return self.data.get("credentials") or []

    @property
    def weekly_routine(self) -> Dict[str, list]:
        return self.data.get("weeklyRoutine") or default_routine()

    def load(self) -> Dict[str, Any]:
        slugs = [entity.slug for entity in ENTITIES]
        # Session state is only readable on the script thread.
        token = api_client.current_token()
        try:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {slug: pool.submit(self._api, "GET", f"/api/{slug}", token=token) for slug in slugs}
                routine_future = pool.submit(self._api, "GET", "/api/routine", token=token)
                collections = {slug: future.result() or [] for slug, future in futures.items()}
                routine = routine_future.result() or {}
        except ApiError as exc:
            logger.warning("Loading life data failed: %s", exc)
            raise SyncError(f"Could not load data: {exc.detail}") from exc
        self.data = build_life_data(collections, routine.get("weeklyRoutine"), self.tz)
        self.loaded = True
        return self.data

    # -- view model plumbing ----------------------------------------------

    def _stamp(self) -> str:
        return self.now().isoformat()

    def _bucket(self, view_key: str, item: dict) -> str:
        return date_key(item.get(bucket_date_field(view_key)) or item.get("createdAt"), self.tz)

    def _locate(self, view_key: str, item_id: str):
        """Return ``(container, slot)`` holding the item, or ``(None, None)``."""
        if view_key in GLOBAL_LIST_KEYS:
            for index, item in enumerate(self.data.get(view_key) or []):
                if item.get("id") == item_id:
                    return self.data[view_key], index
            return None, None
        for day in self.data["dailyData"].values():
            if view_key in DAY_SINGLETON_KEYS:
                item = day.get(view_key)
                if item and item.get("id") == item_id:
                    return day, view_key
                continue
            for index, item in enumerate(day.get(view_key) or []):
                if item.get("id") == item_id:
                    return day[view_key], index
        return None, None

    def _find(self, view_key: str, item_id: str) -> Optional[dict]:
        container, slot = self._locate(view_key, item_id)
        return None if container is None else container[slot]

    def _require(self, view_key: str, item_id: str) -> dict:
        item = self._find(view_key, item_id)
        if item is None:
            raise SyncError(f"Unknown {view_key} item: {item_id}")
        return item

    def _remove(self, view_key: str, item_id: str) -> Optional[dict]:
        container, slot = self._locate(view_key, item_id)
        if container is None:
            return None
        return container.pop(slot)

    def _put(self, view_key: str, item_id: str, item: dict) -> None:
        container, slot = self._locate(view_key, item_id)
        if container is None:
            fold_item(self.data, view_key, item, self.tz)
            return
        if view_key not in GLOBAL_LIST_KEYS and self._bucket(view_key, container[slot]) != self._bucket(view_key, item):
            container.pop(slot)
            fold_item(self.data, view_key, item, self.tz)
            return
        container[slot] = item

    def _sync(self, apply: Callable[[], None], call: Callable[[], Any], label: str):
        snapshot = copy.deepcopy(self.data)
        apply()
        try:
            return call()
        except ApiError as exc:
            self.data = snapshot
            logger.warning("%s failed, local change reverted: %s", label, exc)
            raise SyncError(f"{label} failed: {exc.detail}") from exc

    # -- generic entity mutations -------------------------------------------

    def _create(self, slug: str, payload: dict) -> dict:
        view_key = ENTITIES_BY_SLUG[slug].view_key
        provisional = {"id": f"{LOCAL_ID_PREFIX}{uuid4().hex}", **payload}
        echoed = self._sync(
            lambda: fold_item(self.data, view_key, provisional, self.tz),
            lambda: self._api("POST", f"/api/{slug}", json=payload),
            f"Creating {slug}",
        )
        self._put(view_key, provisional["id"], echoed)
        return echoed

    def _update(self, slug: str, item_id: str, changes: dict) -> dict:
        view_key = ENTITIES_BY_SLUG[slug].view_key
        current = self._require(view_key, item_id)
        merged = {**current, **changes}
        echoed = self._sync(
            lambda: self._put(view_key, item_id, merged),
            lambda: self._api("PUT", f"/api/{slug}/{item_id}", json=changes),
            f"Updating {slug}",
        )
        if isinstance(echoed, dict):
            self._put(view_key, item_id, echoed)
            return echoed
        return merged

    def _delete(self, slug: str, item_id: str) -> None:
        view_key = ENTITIES_BY_SLUG[slug].view_key
        self._require(view_key, item_id)
        self._sync(
            lambda: self._remove(view_key, item_id),
            lambda: self._api("DELETE", f"/api/{slug}/{item_id}"),
            f"Deleting {slug}",
        )

    # -- tasks ---------------------------------------------------------------

    def add_task(self, text: str, due_date, notification_minutes: int | None = None) -> dict:
        due = due_date.isoformat() if isinstance(due_date, datetime) else str(due_date)
        return self._create(
            "tasks",
            {
                "text": text,
                "completed": False,
                "dueDate": due,
                "notificationMinutes": notification_minutes,
                "createdAt": date_key(due, self.tz),
            },
        )

    def toggle_task(self, task_id: str) -> dict:
        task = self._require("tasks", task_id)
        return self._update("tasks", task_id, {"completed": not task.get("completed")})

    def update_task(self, task_id: str, **changes) -> dict:
        return self._update("tasks", task_id, changes)

    def delete_task(self, task_id: str) -> None:
        self._delete("tasks", task_id)

    # -- money & time --------------------------------------------------------

    def add_expense(self, amount: float, description: str, category: str) -> dict:
        payload = {"amount": amount, "description": description, "category": category, "createdAt": self._stamp()}
        return self._create("expenses", payload)

    def delete_expense(self, expense_id: str) -> None:
        self._delete("expenses", expense_id)

    def add_income(self, amount: float, description: str, category: str) -> dict:
        payload = {"amount": amount, "description": description, "category": category, "createdAt": self._stamp()}
        return self._create("income", payload)

    def delete_income(self, income_id: str) -> None:
        self._delete("income", income_id)

    def add_time_log(self, activity: str, minutes: int) -> dict:
        return self._create("time-logs", {"activity": activity, "minutes": minutes, "createdAt": self._stamp()})

    def delete_time_log(self, log_id: str) -> None:
        self._delete("time-logs", log_id)

    # -- per-day singletons --------------------------------------------------

    def log_mood(self, mood: str) -> dict:
        existing = self.day().get("moodLog")
        if existing:
            return self._update("mood-logs", existing["id"], {"mood": mood})
        return self._create("mood-logs", {"mood": mood, "createdAt": self._stamp()})

    def save_journal_entry(self, text: str) -> dict | None:
        existing = self.day().get("journalEntry")
        if existing:
            return self._update("journal-entries", existing["id"], {"text": text})
        if not (text or "").strip():
            return None
        return self._create("journal-entries", {"text": text, "createdAt": self._stamp()})

    def save_photo_log(self, image_data_url: str, note: str | None = None) -> dict:
        payload = {"imageDataUrl": image_data_url, "note": note, "createdAt": self._stamp()}
        existing = self.day().get("photoLog")
        if existing:
            return self._update("photo-logs", existing["id"], payload)
        return self._create("photo-logs", payload)

    def delete_photo_log(self, log_id: str) -> None:
        self._delete("photo-logs", log_id)

    # -- habits --------------------------------------------------------------

    def add_habit(self, name: str, description: str = "") -> dict:
        payload = {"name": name, "description": description, "completions": [], "createdAt": self._stamp()}
        return self._create("habits", payload)

    def update_habit(self, habit_id: str, name: str, description: str = "") -> dict:
        return self._update("habits", habit_id, {"name": name, "description": description})

    def toggle_habit_today(self, habit_id: str) -> dict:
        habit = self._require("habits", habit_id)
        now = self.now()
        today = local_date(now, self.tz)
        completions = list(habit.get("completions") or [])
        kept = [value for value in completions if local_date(value, self.tz) != today]
        if len(kept) == len(completions):
            kept.append(now.isoformat())
        return self._update("habits", habit_id, {"completions": kept})

    def delete_habit(self, habit_id: str) -> None:
        self._delete("habits", habit_id)

    # -- goals ---------------------------------------------------------------

    def add_goal(self, title: str, description: str | None = None, target_date: str | None = None) -> dict:
        payload = {
            "title": title,
            "description": description,
            "targetDate": target_date,
            "milestones": [],
            "createdAt": self._stamp(),
        }
        return self._create("goals", payload)

    def update_goal(self, goal_id: str, title: str, description: str | None = None, target_date: str | None = None) -> dict:
        return self._update("goals", goal_id, {"title": title, "description": description, "targetDate": target_date})

    def delete_goal(self, goal_id: str) -> None:
        self._delete("goals", goal_id)

    def _set_milestones(self, goal_id: str, milestones: List[dict]) -> dict:
        return self._update("goals", goal_id, {"milestones": milestones})

    def add_milestone(self, goal_id: str, text: str) -> dict:
        goal = self._require("goals", goal_id)
        milestone = {"id": uuid4().hex, "text": text, "completed": False, "createdAt": self._stamp()}
        return self._set_milestones(goal_id, list(goal.get("milestones") or []) + [milestone])

    def toggle_milestone(self, goal_id: str, milestone_id: str) -> dict:
        goal = self._require("goals", goal_id)
        milestones = [
            {**item, "completed": not item.get("completed")} if item.get("id") == milestone_id else item
            for item in goal.get("milestones") or []
        ]
        return self._set_milestones(goal_id, milestones)

    def delete_milestone(self, goal_id: str, milestone_id: str) -> dict:
        goal = self._require("goals", goal_id)
        milestones = [item for item in goal.get("milestones") or [] if item.get("id") != milestone_id]
        return self._set_milestones(goal_id, milestones)

    # -- credentials ---------------------------------------------------------

    def add_credential(self, website: str, username: str, password: str | None = None, note: str | None = None) -> dict:
        return self._create(
            "credentials",
            {"website": website, "username": username, "password": password, "note": note},
        )

    def delete_credential(self, credential_id: str) -> None:
        self._delete("credentials", credential_id)

    # -- routine -------------------------------------------------------------

    def save_routine(self, weekly_routine: Dict[str, list]) -> Dict[str, list]:
        routine = default_routine()
        routine.update({day: _sorted_routine(tasks) for day, tasks in weekly_routine.items()})

        def apply():
            self.data["weeklyRoutine"] = routine

        echoed = self._sync(
            apply,
            lambda: self._api("POST", "/api/routine", json={"weeklyRoutine": routine}),
            "Saving routine",
        )
        if isinstance(echoed, dict) and echoed.get("weeklyRoutine"):
            self.data["weeklyRoutine"] = echoed["weeklyRoutine"]
        return self.data["weeklyRoutine"]

    def _routine_copy(self) -> Dict[str, list]:
        return {day: [dict(task) for task in tasks] for day, tasks in self.weekly_routine.items()}

    def add_routine_task(self, day: str, time: str, text: str) -> Dict[str, list]:
        routine = self._routine_copy()
        routine[day] = _sorted_routine(routine.get(day, []) + [{"id": uuid4().hex, "time": time, "text": text}])
        return self.save_routine(routine)

    def update_routine_task(self, day: str, task_id: str, time: str, text: str) -> Dict[str, list]:
        routine = self._routine_copy()
        routine[day] = _sorted_routine(
            [{**task, "time": time, "text": text} if task.get("id") == task_id else task for task in routine.get(day, [])]
        )
        return self.save_routine(routine)

    def delete_routine_task(self, day: str, task_id: str) -> Dict[str, list]:
        routine = self._routine_copy()
        routine[day] = [task for task in routine.get(day, []) if task.get("id") != task_id]
        return self.save_routine(routine)

    def apply_routine_for_today(self, now: datetime | None = None) -> int:
        now = now or self.now()
        day_name = DAYS_OF_WEEK[(now.weekday() + 1) % 7]
        created = 0
        for routine_task in list(self.weekly_routine.get(day_name) or []):
            hours, minutes = (int(part) for part in routine_task["time"].split(":"))
            task_time = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
            if task_time < now:
                continue
            key = date_key(task_time, self.tz)
            duplicate = any(
                task.get("text") == routine_task["text"] and date_key(task.get("dueDate"), self.tz) == key
                for task in self.tasks
            )
            if duplicate:
                continue
            self.add_task(routine_task["text"], task_time, None)
            created += 1
        return created

    # -- import / export -----------------------------------------------------

    def import_data(self, blob) -> Dict[str, Any]:
        payload = json.loads(blob) if isinstance(blob, (str, bytes)) else blob
        try:
            result = self._api("POST", "/api/import", json=payload, timeout=60)
        except ApiError as exc:
            logger.warning("Import failed: %s", exc)
            raise SyncError(f"Import failed: {exc.detail}") from exc
        self.load()
        return result

    def export_data(self) -> Dict[str, Any]:
        try:
            return self._api("GET", "/api/export", timeout=60)
        except ApiError as exc:
            raise SyncError(f"Export failed: {exc.detail}") from exc
