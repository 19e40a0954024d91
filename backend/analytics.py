from __future__ import annotations

import calendar
import math
from collections import Counter
from datetime import date, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Tuple

from backend.lifedata import iter_day_items, local_date

MOOD_VALUES = {"Amazing": 5, "Good": 4, "Okay": 3, "Bad": 2, "Awful": 1}
VALUE_TO_MOOD = {value: mood for mood, value in MOOD_VALUES.items()}


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def mood_label(value: float) -> str:
    return VALUE_TO_MOOD.get(round_half_up(value), "N/A")


def days_in_range(start: date, end: date) -> int:
    return max(1, (end - start).days + 1)


def _day_keys(life_data: Dict[str, Any], start: date, end: date) -> List[str]:
    start_iso, end_iso = start.isoformat(), end.isoformat()
    return [key for key in (life_data.get("dailyData") or {}) if start_iso <= key <= end_iso]


def _completion_days(completions: Iterable[str], tz: tzinfo | None = None) -> set[date]:
    days = set()
    for value in completions or []:
        day = local_date(value, tz)
        if day is not None:
            days.add(day)
    return days


def mood_logs_in_range(life_data: Dict[str, Any], start: date, end: date) -> List[dict]:
    return iter_day_items(life_data, "moodLog", _day_keys(life_data, start, end))


def mood_distribution(life_data: Dict[str, Any], start: date, end: date) -> Dict[str, int]:
    counts = Counter(log.get("mood") for log in mood_logs_in_range(life_data, start, end) if log.get("mood"))
    return {mood: counts[mood] for mood in MOOD_VALUES if counts.get(mood)}


def average_mood(life_data: Dict[str, Any], start: date, end: date) -> Tuple[float, str]:
    values = [MOOD_VALUES[log["mood"]] for log in mood_logs_in_range(life_data, start, end) if log.get("mood") in MOOD_VALUES]
    if not values:
        return 0.0, "N/A"
    average = sum(values) / len(values)
    return average, mood_label(average)


def habit_consistency(
    habits: List[dict],
    start: date,
    end: date,
    tz: tzinfo | None = None,
) -> List[Dict[str, Any]]:
    span = days_in_range(start, end)
    rows = []
    for habit in habits or []:
        hits = [day for day in _completion_days(habit.get("completions"), tz) if start <= day <= end]
        rows.append({"name": habit.get("name", ""), "consistency": round_half_up(len(hits) / span * 100)})
    rows.sort(key=lambda row: row["consistency"], reverse=True)
    return rows


def current_streak(completions: Iterable[str], today: date, tz: tzinfo | None = None) -> int:
    """Consecutive completed days ending today, or yesterday when today is still open."""
    done = _completion_days(completions, tz)
    if not done:
        return 0
    cursor = today if today in done else today - timedelta(days=1)
    streak = 0
    while cursor in done:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _sum_by(items: List[dict], key: str, value_key: str) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for item in items:
        label = item.get(key) or "Other"
        totals[label] = totals.get(label, 0) + (item.get(value_key) or 0)
    return totals


def finance_summary(life_data: Dict[str, Any], start: date, end: date) -> Dict[str, Any]:
    keys = _day_keys(life_data, start, end)
    expenses = iter_day_items(life_data, "expenses", keys)
    income = iter_day_items(life_data, "income", keys)
    total_income = sum(item.get("amount") or 0 for item in income)
    total_expenses = sum(item.get("amount") or 0 for item in expenses)
    return {
        "totalIncome": total_income,
        "totalExpenses": total_expenses,
        "netBalance": total_income - total_expenses,
        "expenseByCategory": _sum_by(expenses, "category", "amount"),
        "incomeByCategory": _sum_by(income, "category", "amount"),
    }


def time_summary(life_data: Dict[str, Any], start: date, end: date) -> Dict[str, Any]:
    logs = iter_day_items(life_data, "timeLogs", _day_keys(life_data, start, end))
    by_activity = _sum_by(logs, "activity", "minutes")
    return {
        "totalMinutes": int(sum(by_activity.values())),
        "timeByActivity": {activity: int(minutes) for activity, minutes in by_activity.items()},
    }


def goal_progress(goal: dict) -> int:
    milestones = goal.get("milestones") or []
    if not milestones:
        return 0
    completed = sum(1 for milestone in milestones if milestone.get("completed"))
    return round_half_up(completed / len(milestones) * 100)


def goals_progress(goals: List[dict]) -> List[Dict[str, Any]]:
    return [{"title": goal.get("title", ""), "progress": goal_progress(goal)} for goal in goals or []]


def format_duration(total_minutes) -> str:
    total = int(total_minutes or 0)
    if total < 1:
        return "0m"
    hours, minutes = divmod(total, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


def period_bounds(period: str, today: date) -> Tuple[date, date]:
    if period == "week":
        # Weeks start on Sunday.
        return today - timedelta(days=(today.weekday() + 1) % 7), today
    if period == "year":
        return today.replace(month=1, day=1), today
    return today.replace(day=1), today


def period_summary(
    life_data: Dict[str, Any],
    start: date,
    end: date,
    tz: tzinfo | None = None,
    currency: str = "PKR",
) -> Dict[str, Any]:
    finance = finance_summary(life_data, start, end)
    time_data = time_summary(life_data, start, end)
    consistency = habit_consistency(life_data.get("habits") or [], start, end, tz)
    top_habit = consistency[0] if consistency else {"name": "N/A", "consistency": 0}
    average_value, average_name = average_mood(life_data, start, end)
    return {
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        **finance,
        "totalTime": time_data["totalMinutes"],
        "timeByActivity": time_data["timeByActivity"],
        "habitConsistency": consistency,
        "topHabit": top_habit,
        "moodDistribution": mood_distribution(life_data, start, end),
        "averageMoodValue": average_value,
        "averageMood": average_name,
        "goalProgress": goals_progress(life_data.get("goals") or []),
        "keyMetrics": {
            "Net Balance": f"{currency} {finance['netBalance']:.0f}",
            "Average Mood": average_name,
            "Top Habit": f"{top_habit['name']} ({top_habit['consistency']}%)",
            "Total Time Tracked": format_duration(time_data["totalMinutes"]),
        },
    }


def day_overview(life_data: Dict[str, Any], day: date, tz: tzinfo | None = None) -> Dict[str, Any]:
    """Everything recorded on one calendar day, as shown in the day browser."""
    bucket = (life_data.get("dailyData") or {}).get(day.isoformat()) or {}
    journal = str((bucket.get("journalEntry") or {}).get("text") or "").strip()
    transactions = [
        {**item, "type": "income"} for item in bucket.get("income") or []
    ] + [{**item, "type": "expense"} for item in bucket.get("expenses") or []]
    transactions.sort(key=lambda item: item.get("createdAt") or "")
    completed_habits = [
        habit.get("name", "")
        for habit in life_data.get("habits") or []
        if day in _completion_days(habit.get("completions"), tz)
    ]
    tasks = bucket.get("tasks") or []
    return {
        "date": day.isoformat(),
        "mood": (bucket.get("moodLog") or {}).get("mood"),
        "tasks": tasks,
        "completedHabits": completed_habits,
        "transactions": transactions,
        "timeLogs": bucket.get("timeLogs") or [],
        "journal": journal,
        "photo": bucket.get("photoLog"),
        "taskCount": len(tasks),
        "hasJournal": bool(journal),
        "hasPhoto": bool(bucket.get("photoLog")),
        "hasCompletedHabits": bool(completed_habits),
    }


def month_overview(life_data: Dict[str, Any], year: int, month: int, tz: tzinfo | None = None) -> List[Dict[str, Any]]:
    """One marker row per day of the month that has anything recorded."""
    _, last = calendar.monthrange(year, month)
    daily = life_data.get("dailyData") or {}
    rows = []
    for number in range(1, last + 1):
        overview = day_overview(life_data, date(year, month, number), tz)
        if overview["date"] in daily or overview["hasCompletedHabits"]:
            rows.append({key: overview[key] for key in ("date", "mood", "taskCount", "hasJournal", "hasPhoto", "hasCompletedHabits")})
    return rows
