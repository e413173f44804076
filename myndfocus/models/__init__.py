"""Data models for myndfocus."""

from myndfocus.models.task import (
    Task,
    Subtask,
    Microtask,
    TimerState,
    Priority,
    CanonicalTask,
    parse_timestamp,
    resolve_priority,
)
from myndfocus.models.results import ScoreResult, RankingResult, ReminderHandle, PriorityExplanation

__all__ = [
    "Task",
    "Subtask",
    "Microtask",
    "TimerState",
    "Priority",
    "CanonicalTask",
    "parse_timestamp",
    "resolve_priority",
    "ScoreResult",
    "RankingResult",
    "ReminderHandle",
    "PriorityExplanation",
]
