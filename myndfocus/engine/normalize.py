"""Task normalization for myndfocus.

Stored task documents come in several shapes (``interval`` vs ``intervals``,
``scheduledFor`` vs ``dueDate``, camelCase vs snake_case). Everything is
folded into one ``CanonicalTask`` here so scoring never branches on shape.
"""

from datetime import datetime
from typing import Any, Mapping, Optional, Union

from myndfocus.models.task import CanonicalTask, Task, parse_timestamp


TaskLike = Union[Task, Mapping[str, Any]]


def as_task(raw: TaskLike) -> Task:
    """Coerce a stored document or Task into a Task.

    Raises:
        TypeError: If raw is neither a Task nor a mapping
        pydantic.ValidationError: If the document cannot be validated
    """
    if isinstance(raw, Task):
        return raw
    if isinstance(raw, Mapping):
        return Task.model_validate(dict(raw))
    raise TypeError(f"Cannot normalize {type(raw).__name__} into a task")


def shortest_interval(task: Task) -> Optional[int]:
    """Return "the" reminder interval of a task.

    The plural ``intervals`` wins over the legacy ``interval`` when both exist.
    """
    if task.intervals:
        return min(task.intervals)
    return task.interval


def normalize_task(raw: TaskLike) -> CanonicalTask:
    """Normalize a task into the canonical scoring shape.

    Args:
        raw: Task model or raw document mapping

    Returns:
        CanonicalTask
    """
    task = as_task(raw)
    return CanonicalTask(
        id=task.id or None,
        text=task.text,
        priority=task.priority,
        interval=shortest_interval(task),
        scheduled_for=task.scheduled_for or task.due_date,
        created_at=task.created_at,
        reschedule_count=task.reschedule_count,
        subtask_count=len(task.subtasks),
        completed=task.completed,
        timer_active=task.timer_active,
    )


def _scheduled_date(task: TaskLike):
    canonical = task if isinstance(task, CanonicalTask) else normalize_task(task)
    if canonical.scheduled_for is None:
        return None
    return canonical.scheduled_for.date()


def is_future_task(task: TaskLike, now: datetime) -> bool:
    """True if the task is scheduled for a later calendar day than ``now``."""
    scheduled = _scheduled_date(task)
    return scheduled is not None and scheduled > parse_timestamp(now).date()


def is_past_due(task: TaskLike, now: datetime) -> bool:
    """True if the task was scheduled for an earlier calendar day than ``now``."""
    scheduled = _scheduled_date(task)
    return scheduled is not None and scheduled < parse_timestamp(now).date()
