"""Task data model for myndfocus."""

import logging
import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class Priority(str, Enum):
    """Task priority enumeration (lowest to highest)."""
    LOWEST = "Lowest"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


# Lower-case synonyms seen in older documents
PRIORITY_SYNONYMS = {
    "lowest": Priority.LOWEST,
    "low": Priority.LOWEST,
    "medium": Priority.MEDIUM,
    "high": Priority.HIGH,
    "urgent": Priority.URGENT,
}


def resolve_priority(value: Any) -> Priority:
    """Resolve a raw priority value to a Priority, defaulting to LOWEST.

    Args:
        value: Priority enum, its string value, or a lower-case synonym

    Returns:
        Matching Priority, or Priority.LOWEST for anything unrecognised
    """
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        return PRIORITY_SYNONYMS.get(value.strip().lower(), Priority.LOWEST)
    return Priority.LOWEST


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts datetimes, dates, ISO-8601 strings, epoch milliseconds and
    document-store timestamp dicts (``{"seconds": ..., "nanoseconds": ...}``).
    Naive datetimes are taken as UTC.

    Returns:
        Parsed datetime, or None if the value is missing or malformed
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, dict) and "seconds" in value:
        try:
            seconds = float(value["seconds"]) + float(value.get("nanoseconds", 0)) / 1e9
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class TaskModel(BaseModel):
    """Base for stored records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    def to_document(self) -> dict:
        """Serialize to the camelCase document shape used by the store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Microtask(TaskModel):
    """Smallest unit of a broken-down subtask."""
    id: Optional[str] = None
    text: str = ""
    completed: bool = False


class Subtask(TaskModel):
    """Subtask of a task, optionally broken into microtasks."""
    id: Optional[str] = None
    text: str = ""
    completed: bool = False
    microtasks: List[Microtask] = Field(default_factory=list)


class TimerState(TaskModel):
    """Transient reminder-timer sub-state of a task."""
    is_active: bool = False
    is_completed: bool = False
    start_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, description="Timer length in minutes")
    notification_status: Optional[str] = None
    completed_at: Optional[datetime] = None

    @field_validator("start_time", "completed_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value):
        return parse_timestamp(value)


class Task(TaskModel):
    """Task record as stored in the document store.

    Field validators are lenient: malformed timestamps become None and
    malformed counters fall back to their defaults, so a bad document never
    prevents a ranking pass.
    """

    id: Optional[str] = Field(None, description="Opaque unique task identifier")
    user_id: Optional[str] = Field(None, description="Owning user id")
    text: str = Field("", description="Human-readable description")
    priority: Priority = Field(Priority.LOWEST, description="Priority level")
    intervals: List[int] = Field(default_factory=list, description="Reminder cadences in minutes")
    interval: Optional[int] = Field(None, description="Legacy single reminder cadence in minutes")
    scheduled_for: Optional[datetime] = Field(None, description="Scheduled date/time")
    due_date: Optional[datetime] = Field(None, description="Legacy due date (scheduled_for wins)")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    reschedule_count: int = Field(0, ge=0, description="Number of reschedules so far")
    subtasks: List[Subtask] = Field(default_factory=list)
    completed: bool = False
    completed_at: Optional[datetime] = None
    notification_id: Optional[str] = None
    next_reminder_time: Optional[datetime] = None
    timer_state: Optional[TimerState] = None

    @field_validator("priority", mode="before")
    @classmethod
    def _lenient_priority(cls, value):
        return resolve_priority(value)

    @field_validator("scheduled_for", "due_date", "created_at", "completed_at", "next_reminder_time", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value, info):
        parsed = parse_timestamp(value)
        if parsed is None and value not in (None, ""):
            logger.debug(f"Ignoring malformed {info.field_name}: {value!r}")
        return parsed

    @field_validator("intervals", mode="before")
    @classmethod
    def _lenient_intervals(cls, value):
        if value is None:
            return []
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            value = [value]
        cleaned = []
        for item in value:
            minutes = _positive_int(item)
            if minutes is not None:
                cleaned.append(minutes)
        return cleaned

    @field_validator("interval", mode="before")
    @classmethod
    def _lenient_interval(cls, value):
        return _positive_int(value)

    @field_validator("reschedule_count", mode="before")
    @classmethod
    def _lenient_reschedule_count(cls, value):
        count = _positive_int(value)
        return count if count is not None else 0

    @field_validator("subtasks", mode="before")
    @classmethod
    def _lenient_subtasks(cls, value):
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, (dict, Subtask))]

    @field_validator("timer_state", mode="before")
    @classmethod
    def _lenient_timer_state(cls, value):
        if isinstance(value, (dict, TimerState)):
            return value
        return None

    @property
    def timer_active(self) -> bool:
        return bool(self.timer_state and self.timer_state.is_active)


def _positive_int(value: Any) -> Optional[int]:
    """Coerce a raw numeric value to a positive int, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return int(number)


class CanonicalTask(BaseModel):
    """Normalized, scoring-ready view of a Task.

    Produced by ``myndfocus.engine.normalize.normalize_task``; every field the
    scoring engine reads has exactly one shape here.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str]
    text: str
    priority: Priority
    interval: Optional[int] = Field(None, description="Shortest reminder cadence in minutes")
    scheduled_for: Optional[datetime] = None
    created_at: Optional[datetime] = None
    reschedule_count: int = 0
    subtask_count: int = 0
    completed: bool = False
    timer_active: bool = False
