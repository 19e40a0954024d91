from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Literal, Type, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Mood(str, Enum):
    AMAZING = "Amazing"
    GOOD = "Good"
    OKAY = "Okay"
    BAD = "Bad"
    AWFUL = "Awful"


class ExpenseCategory(str, Enum):
    FOOD = "Food & Drinks"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    UTILITIES = "Utilities"
    INVESTMENT = "Investment"
    JUNK_FOOD = "Junk Food"
    OTHER = "Other"


class IncomeCategory(str, Enum):
    SALARY = "Salary"
    PROFIT = "Profit"
    GIFT = "Gift"
    OTHER = "Other"


def _check_timestamp(value):
    if value is None:
        return value
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError("must be an ISO date or timestamp") from exc
    return str(value).strip()


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=True,
    )


class _Dated(ApiModel):
    @field_validator("created_at", "due_date", "target_date", check_fields=False)
    @classmethod
    def _iso(cls, value):
        return _check_timestamp(value)


class TaskCreate(_Dated):
    text: str = Field(..., min_length=1)
    completed: bool = False
    due_date: str
    notification_minutes: Optional[int] = Field(None, ge=0)
    created_at: str


class TaskPatch(_Dated):
    text: Optional[str] = Field(None, min_length=1)
    completed: Optional[bool] = None
    due_date: Optional[str] = None
    notification_minutes: Optional[int] = Field(None, ge=0)
    created_at: Optional[str] = None


class ExpenseCreate(_Dated):
    category: ExpenseCategory
    amount: float = Field(..., ge=0)
    description: str = Field(..., min_length=1)
    created_at: str


class ExpensePatch(_Dated):
    category: Optional[ExpenseCategory] = None
    amount: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, min_length=1)
    created_at: Optional[str] = None


class IncomeCreate(_Dated):
    category: IncomeCategory
    amount: float = Field(..., ge=0)
    description: str = Field(..., min_length=1)
    created_at: str


class IncomePatch(_Dated):
    category: Optional[IncomeCategory] = None
    amount: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, min_length=1)
    created_at: Optional[str] = None


class MoodLogCreate(_Dated):
    mood: Mood
    created_at: str


class MoodLogPatch(_Dated):
    mood: Optional[Mood] = None
    created_at: Optional[str] = None


class HabitCreate(_Dated):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    completions: List[str] = Field(default_factory=list)
    created_at: str

    @field_validator("completions")
    @classmethod
    def _completions(cls, value):
        return [_check_timestamp(item) for item in value]


class HabitPatch(_Dated):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    completions: Optional[List[str]] = None
    created_at: Optional[str] = None

    @field_validator("completions")
    @classmethod
    def _completions(cls, value):
        if value is None:
            return value
        return [_check_timestamp(item) for item in value]


class JournalEntryCreate(_Dated):
    text: str = Field(..., min_length=1)
    created_at: str


class JournalEntryPatch(_Dated):
    text: Optional[str] = Field(None, min_length=1)
    created_at: Optional[str] = None


class PhotoLogCreate(_Dated):
    image_data_url: str = Field(..., min_length=1)
    note: Optional[str] = None
    created_at: str


class PhotoLogPatch(_Dated):
    image_data_url: Optional[str] = Field(None, min_length=1)
    note: Optional[str] = None
    created_at: Optional[str] = None


class Milestone(_Dated):
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    completed: bool = False
    created_at: str


class GoalCreate(_Dated):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    target_date: Optional[str] = None
    milestones: List[Milestone] = Field(default_factory=list)
    created_at: str


class GoalPatch(_Dated):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    target_date: Optional[str] = None
    milestones: Optional[List[Milestone]] = None
    created_at: Optional[str] = None


class TimeLogCreate(_Dated):
    activity: str = Field(..., min_length=1)
    minutes: int = Field(..., gt=0)
    created_at: str


class TimeLogPatch(_Dated):
    activity: Optional[str] = Field(None, min_length=1)
    minutes: Optional[int] = Field(None, gt=0)
    created_at: Optional[str] = None


class CredentialCreate(ApiModel):
    website: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: Optional[str] = None
    note: Optional[str] = None


class CredentialPatch(ApiModel):
    website: Optional[str] = Field(None, min_length=1)
    username: Optional[str] = Field(None, min_length=1)
    password: Optional[str] = None
    note: Optional[str] = None


class RoutineTask(ApiModel):
    id: str = Field(..., min_length=1)
    time: str
    text: str = Field(..., min_length=1)

    @field_validator("time")
    @classmethod
    def _hh_mm(cls, value):
        value = str(value).strip()
        if not _TIME_RE.match(value):
            raise ValueError("time must use HH:mm")
        return value


class RoutinePayload(ApiModel):
    weekly_routine: Dict[str, List[RoutineTask]]

    @field_validator("weekly_routine")
    @classmethod
    def _weekdays(cls, value):
        unknown = [day for day in value if day not in DAYS_OF_WEEK]
        if unknown:
            raise ValueError(f"unknown weekday: {', '.join(unknown)}")
        return {day: sorted(value.get(day, []), key=lambda task: task.time) for day in DAYS_OF_WEEK}


class PasswordPayload(ApiModel):
    password: str = ""


class ChangePasswordPayload(ApiModel):
    current_password: str = ""
    new_password: str = ""


class AuthResponse(BaseModel):
    id: str
    token: str


class SummaryRequest(ApiModel):
    life_data: Optional[Dict[str, Any]] = None


class ReportRequest(ApiModel):
    life_data: Optional[Dict[str, Any]] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    period: Optional[Literal["week", "month", "year"]] = None


class ChatMessage(ApiModel):
    role: Literal["user", "model"]
    content: str


class ChatRequest(ApiModel):
    life_data: Optional[Dict[str, Any]] = None
    history: List[ChatMessage] = Field(default_factory=list)


@dataclass(frozen=True)
class EntitySpec:
    """One variant of the document registry.

    ``view_key`` is where the entity lives inside the LifeData view model and
    ``date_field`` is the timestamp that picks its day bucket (``None`` for
    top-level lists).
    """

    slug: str
    table: str
    create_model: Type[ApiModel]
    patch_model: Type[ApiModel]
    view_key: str
    date_field: str | None = "createdAt"
    one_per_day: bool = False

    @property
    def non_nullable_fields(self) -> set[str]:
        """Fields a stored document must never hold as ``null``, defaulted or not."""
        return {
            field.alias or name
            for name, field in self.create_model.model_fields.items()
            if type(None) not in get_args(field.annotation) and field.annotation is not type(None)
        }


ENTITIES: List[EntitySpec] = [
    EntitySpec("tasks", "life_tasks", TaskCreate, TaskPatch, "tasks", date_field="dueDate"),
    EntitySpec("expenses", "life_expenses", ExpenseCreate, ExpensePatch, "expenses"),
    EntitySpec("income", "life_income", IncomeCreate, IncomePatch, "income"),
    EntitySpec("mood-logs", "life_mood_logs", MoodLogCreate, MoodLogPatch, "moodLog", one_per_day=True),
    EntitySpec("habits", "life_habits", HabitCreate, HabitPatch, "habits", date_field=None),
    EntitySpec("journal-entries", "life_journal_entries", JournalEntryCreate, JournalEntryPatch, "journalEntry", one_per_day=True),
    EntitySpec("photo-logs", "life_photo_logs", PhotoLogCreate, PhotoLogPatch, "photoLog", one_per_day=True),
    EntitySpec("goals", "life_goals", GoalCreate, GoalPatch, "goals", date_field=None),
    EntitySpec("time-logs", "life_time_logs", TimeLogCreate, TimeLogPatch, "timeLogs"),
    EntitySpec("credentials", "life_credentials", CredentialCreate, CredentialPatch, "credentials", date_field=None),
]

ENTITIES_BY_SLUG: Dict[str, EntitySpec] = {entity.slug: entity for entity in ENTITIES}
