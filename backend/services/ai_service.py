from __future__ import annotations

import calendar
import copy
import json
import logging
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List

from backend import analytics
from backend.errors import UpstreamError, ValidationError
from backend.lifedata import all_tasks, local_date, parse_timestamp
from backend.services.gemini import TextGenerator

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "I'm having trouble reflecting on your day right now. Please try again later."
REPORT_FALLBACK = "I'm having trouble analyzing your data right now. Please try again later."
CHAT_INIT_FALLBACK = "Sorry, I'm having trouble connecting right now."
CHAT_MESSAGE_FALLBACK = "Sorry, I'm having trouble with that request. Please try again."

PHOTO_PLACEHOLDER = "...image data present..."
CREDENTIALS_PLACEHOLDER = "...credentials hidden..."

CHAT_OPENER = (
    "Begin the conversation by introducing yourself and suggesting a few questions the user could ask, "
    'for example: "How much did I spend last month?", "List my tasks for tomorrow.", '
    'or "What was my mood like last week?".'
)


def sanitize_for_prompt(life_data: Dict[str, Any]) -> Dict[str, Any]:
    clean = copy.deepcopy(life_data or {})
    for day in (clean.get("dailyData") or {}).values():
        if isinstance(day, dict) and day.get("photoLog"):
            day["photoLog"] = {**day["photoLog"], "imageDataUrl": PHOTO_PLACEHOLDER}
    clean["credentials"] = CREDENTIALS_PLACEHOLDER
    return clean


def split_report_sections(text: str) -> List[Dict[str, Any]]:
    sections = []
    for chunk in (text or "").split("### "):
        lines = [line.strip() for line in chunk.strip().splitlines()]
        if not lines or not lines[0]:
            continue
        sections.append({"title": lines[0], "paragraphs": [line for line in lines[1:] if line]})
    return sections


def _aware(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz) if tz is not None else value.astimezone()
    return value


def _month_bounds(today: date) -> tuple[date, date]:
    last = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last)


def _join(values: List[str], empty: str) -> str:
    return ", ".join(values) or empty


def build_daily_summary_prompt(
    life_data: Dict[str, Any],
    now: datetime,
    tz: tzinfo | None = None,
    currency: str = "PKR",
) -> str:
    now = _aware(now, tz)
    today = local_date(now, tz)
    today_data = (life_data.get("dailyData") or {}).get(today.isoformat()) or {}
    tasks = today_data.get("tasks") or []

    upcoming = []
    for task in all_tasks(life_data):
        due = parse_timestamp(task.get("dueDate"))
        if due is not None and not task.get("completed") and _aware(due, tz) > now:
            upcoming.append((_aware(due, tz), task))
    upcoming.sort(key=lambda pair: pair[0])

    habit_lines = []
    for habit in life_data.get("habits") or []:
        done = any(local_date(value, tz) == today for value in habit.get("completions") or [])
        label = habit.get("name", "")
        if habit.get("description"):
            label = f"{label} ({habit['description']})"
        habit_lines.append(f"{label} ({'Done' if done else 'Pending'})")

    goals = "; ".join(
        f"{goal.get('title', '')} ({analytics.goal_progress(goal)}% complete)"
        for goal in life_data.get("goals") or []
    ) or "No goals set"

    month_start, month_end = _month_bounds(today)
    finance = analytics.finance_summary(life_data, month_start, month_end)

    journal = (today_data.get("journalEntry") or {}).get("text") or "Not written yet."
    photo_note = (today_data.get("photoLog") or {}).get("note") or "No photo note."
    mood = (today_data.get("moodLog") or {}).get("mood") or "Not logged"

    prompt = f"""
You are a compassionate and insightful personal AI assistant called Momentum AI.
Your goal is to provide a brief, reflective, and encouraging end-of-day summary based on the user's logged data.
Analyze the provided data for today and generate a summary in 3-4 short, easy-to-read paragraphs.
Use a friendly and supportive tone. Do not use markdown formatting, just plain text paragraphs. The currency is {currency}.

IMPORTANT: The user has written a journal entry and possibly added a photo with a note. These are the most important pieces of data. Base your reflection primarily on their written thoughts, using the other data points as context. If there is no journal, focus on mood, tasks, and habits.

Today's Data:
- Journal Entry: {journal}
- Photo Journal Note: {photo_note}
- Mood: {mood}
- Completed Tasks Today: {_join([t.get('text', '') for t in tasks if t.get('completed')], 'None')}
- Pending Tasks Today: {_join([t.get('text', '') for t in tasks if not t.get('completed')], 'None')}
- Upcoming Tasks (Next few): {_join([task.get('text', '') for _, task in upcoming[:5]], 'None')}
- Habits Status: {'; '.join(habit_lines) or 'No habits tracked'}
- This Month's Finances: Total Income: {currency} {finance['totalIncome']:.0f}, Total Expenses: {currency} {finance['totalExpenses']:.0f}, Net Balance: {currency} {finance['netBalance']:.0f}
- Active Goals: {goals}

Based on this data, provide a reflection covering:
1. Start by directly addressing the user's journal entry and photo note. Connect their feelings and events described there with their logged mood.
2. Weave in their task accomplishments and completed habits. If any of these align with their active goals, mention it as positive progress.
3. Offer gentle encouragement about pending tasks or habits, linking back to their journal entry or their larger goals if possible.
4. Briefly comment on their financial situation (income vs. expenses in {currency}) if it seems relevant to their journaled thoughts or goals.
5. End with a positive and forward-looking statement for tomorrow, inspired by their journal and goals.
"""
    return prompt.strip()


def resolve_report_range(
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    today: date,
    tz: tzinfo | None = None,
) -> tuple[date, date]:
    if start_date or end_date:
        start = local_date(start_date, tz) if start_date else None
        end = local_date(end_date, tz) if end_date else None
        bad = [name for name, value in (("startDate", start), ("endDate", end)) if value is None]
        if bad:
            raise ValidationError("Invalid report range", fields=bad)
        if start > end:
            raise ValidationError("startDate must not be after endDate", fields=["startDate", "endDate"])
        return start, end
    return analytics.period_bounds(period or "month", today)


def build_report_prompt(
    life_data: Dict[str, Any],
    start: date,
    end: date,
    tz: tzinfo | None = None,
    currency: str = "PKR",
) -> str:
    summary = analytics.period_summary(life_data, start, end, tz, currency)
    dumps = lambda value: json.dumps(value, ensure_ascii=False)  # noqa: E731
    prompt = f"""
You are an expert data analyst and personal coach AI for a life dashboard app.
Your tone is insightful, encouraging, and data-driven. The currency is {currency}.
Analyze the user's data for the specified period and provide a clear, insightful, and actionable report.
The user wants a well-structured report. Use simple markdown for formatting.
- Use '### ' for section headings.
- Use a single newline for paragraphs.
- Do not use any other markdown.

Here are the required sections:
### 📈 Overall Summary
Provide a brief, high-level overview of the user's period based on the key metrics. What was the general trend?

### 😊 Mood & Well-being
Analyze the mood distribution and the average mood. Are there any noticeable patterns? For example, did their mood dip on days with high spending on 'Junk Food' or improve when they completed a 'Workout' habit? Mention the most frequent mood.

### 💰 Financial Health
Analyze their income vs. expenses in {currency}. Highlight the top spending categories. Provide a brief comment on their financial discipline for the period. Mention the net balance (positive or negative).

### 💪 Habit & Goal Momentum
Comment on the user's habit consistency. Which habits are they sticking to, and which need more attention? Then, review their goal progress. Are their activities (like time logs and completed habits) aligning with their long-term ambitions?

### ⏱️ Time Management
Analyze how the user has spent their time based on their time logs. Which activities dominate? Are they investing time in activities that align with their goals, or are there potential time sinks they might want to review?

### 🚀 Actionable Advice
Based on all the data, provide 2-3 concrete, encouraging, and actionable suggestions for the user to improve or continue their great work in the next period.

Here is the data for the period:
- **Period:** {start.isoformat()} to {end.isoformat()}
- **Key Metrics:** {dumps(summary['keyMetrics'])}
- **Mood Distribution (count of days):** {dumps(summary['moodDistribution'])}
- **Habit Consistency (%):** {dumps(summary['habitConsistency'])}
- **Goal Progress (%):** {dumps(summary['goalProgress'])}
- **Financials:**
    - Total Income: {currency} {summary['totalIncome']}
    - Total Expenses: {currency} {summary['totalExpenses']}
    - Expenses by Category ({currency}): {dumps(summary['expenseByCategory'])}
- **Time Logs:**
    - Total Time Logged (minutes): {summary['totalTime']}
    - Time by Activity (minutes): {dumps(summary['timeByActivity'])}

Generate the report following the specified markdown rules.
"""
    return prompt.strip()


def build_chat_system_instruction(life_data: Dict[str, Any], now: datetime, currency: str = "PKR") -> str:
    data = json.dumps(sanitize_for_prompt(life_data), indent=2, ensure_ascii=False)
    return (
        "You are a helpful and friendly AI assistant called Momentum AI. Your purpose is to help the user "
        "understand and query their personal data.\n"
        "You must answer questions based *only* on the provided JSON data context. Do not make up information "
        "or answer questions outside of this context.\n"
        "If you don't know the answer from the data, say so.\n"
        f"The current date is: {now.isoformat()}.\n"
        f"The user's data is provided below in JSON format. The currency is {currency}.\n"
        f"<data>\n{data}\n</data>"
    )


async def _relay(generate: TextGenerator, fallback: str, label: str, contents, system_instruction=None) -> str:
    try:
        if system_instruction is None:
            return await generate(contents)
        return await generate(contents, system_instruction=system_instruction)
    except UpstreamError as exc:
        logger.warning("AI %s failed: %s", label, exc.message)
        return fallback


async def daily_summary(generate: TextGenerator, life_data, now: datetime, tz=None, currency="PKR") -> str:
    prompt = build_daily_summary_prompt(life_data, now, tz, currency)
    return await _relay(generate, SUMMARY_FALLBACK, "summary", prompt)


async def periodic_report(generate: TextGenerator, life_data, start: date, end: date, tz=None, currency="PKR") -> str:
    prompt = build_report_prompt(life_data, start, end, tz, currency)
    return await _relay(generate, REPORT_FALLBACK, "report", prompt)


async def chat_init(generate: TextGenerator, life_data, now: datetime, currency="PKR") -> str:
    system = build_chat_system_instruction(life_data, now, currency)
    contents = [{"role": "user", "parts": [CHAT_OPENER]}]
    return await _relay(generate, CHAT_INIT_FALLBACK, "chat init", contents, system)


async def chat_message(generate: TextGenerator, history: List[dict], life_data, now: datetime, currency="PKR") -> str:
    system = build_chat_system_instruction(life_data, now, currency)
    contents = [{"role": item["role"], "parts": [item["content"]]} for item in history]
    if not contents:
        raise ValidationError("Chat history is empty", fields=["history"])
    return await _relay(generate, CHAT_MESSAGE_FALLBACK, "chat message", contents, system)
