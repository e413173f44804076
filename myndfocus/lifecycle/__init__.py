"""Task lifecycle (complete / delete / reschedule) for myndfocus."""

from myndfocus.lifecycle.adapter import LifecycleAdapter, LifecycleResult
from myndfocus.lifecycle.collection import TaskCollection, fetch_tasks
from myndfocus.lifecycle.errors import (
    LifecycleError,
    InvalidTask,
    AlreadyProcessing,
    StoreFailure,
    StoreError,
)
from myndfocus.lifecycle.protocols import DocumentStore, ReminderScheduler

__all__ = [
    "LifecycleAdapter",
    "LifecycleResult",
    "TaskCollection",
    "fetch_tasks",
    "LifecycleError",
    "InvalidTask",
    "AlreadyProcessing",
    "StoreFailure",
    "StoreError",
    "DocumentStore",
    "ReminderScheduler",
]
