"""Folding flat entity lists into the date-keyed LifeData view model.

Pure functions only: the backend uses them to build exports and AI context,
the dashboard uses them to assemble its in-memory store.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from backend.schemas import DAYS_OF_WEEK, ENTITIES

DAY_LIST_KEYS = ("tasks", "expenses", "income", "timeLogs")
DAY_SINGLETON_KEYS = ("moodLog", "journalEntry", "photoLog")
GLOBAL_LIST_KEYS = ("habits", "goals", "credentials")


def parse_timestamp(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def local_date(value, tz: tzinfo | None = None) -> date | None:
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz) if tz is not None else parsed.astimezone()
    return parsed.date()


def date_key(value, tz: tzinfo | None = None) -> str:
    day = local_date(value, tz)
    if day is None:
        raise ValueError(f"Unparseable timestamp: {value!r}")
    return day.isoformat()


def empty_day() -> Dict[str, Any]:
    return {"tasks": [], "expenses": [], "income": [], "timeLogs": []}


def default_routine() -> Dict[str, list]:
    return {day: [] for day in DAYS_OF_WEEK}


def empty_life_data() -> Dict[str, Any]:
    return {
        "dailyData": {},
        "habits": [],
        "goals": [],
        "credentials": [],
        "weeklyRoutine": default_routine(),
    }


def bucket_date_field(view_key: str) -> str:
    return "dueDate" if view_key == "tasks" else "createdAt"


def fold_item(life_data: Dict[str, Any], view_key: str, item: dict, tz: tzinfo | None = None) -> str | None:
    """Place one entity into the view model and return its date key.

    Global lists are appended and return ``None``. Per-day singletons replace
    whatever the bucket held before.
    """
    if view_key in GLOBAL_LIST_KEYS:
        life_data.setdefault(view_key, []).append(item)
        return None
    key = date_key(item.get(bucket_date_field(view_key)) or item.get("createdAt"), tz)
    day = life_data["dailyData"].setdefault(key, empty_day())
    if view_key in DAY_SINGLETON_KEYS:
        day[view_key] = item
    else:
        day.setdefault(view_key, []).append(item)
    return key


def build_life_data(
    collections: Dict[str, List[dict]],
    weekly_routine: Optional[Dict[str, list]] = None,
    tz: tzinfo | None = None,
) -> Dict[str, Any]:
    life_data = empty_life_data()
    for entity in ENTITIES:
        for item in collections.get(entity.slug) or []:
            fold_item(life_data, entity.view_key, item, tz)
    if weekly_routine:
        routine = default_routine()
        routine.update({day: list(tasks or []) for day, tasks in weekly_routine.items()})
        life_data["weeklyRoutine"] = routine
    life_data["dailyData"] = dict(sorted(life_data["dailyData"].items()))
    return life_data


def flatten_life_data(life_data: Dict[str, Any]) -> Dict[str, List[dict]]:
    """Inverse of :func:`build_life_data`, keyed by route slug."""
    collections: Dict[str, List[dict]] = {entity.slug: [] for entity in ENTITIES}
    by_view_key = {entity.view_key: entity.slug for entity in ENTITIES}
    for day in (life_data.get("dailyData") or {}).values():
        if not isinstance(day, dict):
            continue
        for view_key in DAY_LIST_KEYS:
            collections[by_view_key[view_key]].extend(day.get(view_key) or [])
        for view_key in DAY_SINGLETON_KEYS:
            if day.get(view_key):
                collections[by_view_key[view_key]].append(day[view_key])
    for view_key in GLOBAL_LIST_KEYS:
        value = life_data.get(view_key)
        if isinstance(value, list):
            collections[by_view_key[view_key]].extend(value)
    return collections


def iter_day_items(life_data: Dict[str, Any], view_key: str, days: Iterable[str] | None = None) -> List[dict]:
    daily = life_data.get("dailyData") or {}
    keys = list(days) if days is not None else list(daily.keys())
    items: List[dict] = []
    for key in keys:
        day = daily.get(key)
        if not day:
            continue
        if view_key in DAY_SINGLETON_KEYS:
            if day.get(view_key):
                items.append(day[view_key])
        else:
            items.extend(day.get(view_key) or [])
    return items


def all_tasks(life_data: Dict[str, Any]) -> List[dict]:
    return iter_day_items(life_data, "tasks")
