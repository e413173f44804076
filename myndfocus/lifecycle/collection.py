"""Local task collection for myndfocus.

Holds the active, future and completed task sets a list/view works from.
Lifecycle operations mutate it optimistically and restore snapshots on
store failure.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from myndfocus.engine.normalize import is_future_task
from myndfocus.engine.ranking import partition_tasks
from myndfocus.lifecycle.protocols import DocumentStore
from myndfocus.models.constants import TASKS_COLLECTION
from myndfocus.models.task import Task

logger = logging.getLogger(__name__)

ACTIVE = "active"
FUTURE = "future"
COMPLETED = "completed"

# (bucket name or None if absent, task or None)
Snapshot = Tuple[Optional[str], Optional[Task]]


class TaskCollection:
    """Active / future / completed task sets keyed by id (insertion ordered)."""

    def __init__(self):
        self._buckets: Dict[str, Dict[str, Task]] = {ACTIVE: {}, FUTURE: {}, COMPLETED: {}}

    def load(self, tasks: Iterable, now: datetime) -> None:
        """Replace the contents with a fresh set of tasks."""
        active, future, completed = partition_tasks(tasks, now)
        self._buckets = {
            ACTIVE: {task.id: task for task in active},
            FUTURE: {task.id: task for task in future},
            COMPLETED: {task.id: task for task in completed},
        }
        logger.debug(f"Loaded {len(active)} active, {len(future)} future, {len(completed)} completed tasks")

    def active(self) -> List[Task]:
        return list(self._buckets[ACTIVE].values())

    def future(self) -> List[Task]:
        return list(self._buckets[FUTURE].values())

    def completed(self) -> List[Task]:
        return list(self._buckets[COMPLETED].values())

    def get(self, task_id: str) -> Optional[Task]:
        """Get an active or future task by id."""
        return self._buckets[ACTIVE].get(task_id) or self._buckets[FUTURE].get(task_id)

    def is_completed(self, task_id: str) -> bool:
        return task_id in self._buckets[COMPLETED]

    def __contains__(self, task_id: str) -> bool:
        return any(task_id in bucket for bucket in self._buckets.values())

    def snapshot(self, task_id: str) -> Snapshot:
        for name, bucket in self._buckets.items():
            if task_id in bucket:
                return name, bucket[task_id]
        return None, None

    def restore(self, task_id: str, snapshot: Snapshot) -> None:
        """Put a task back exactly where a snapshot found it."""
        self._discard(task_id)
        name, task = snapshot
        if name is not None and task is not None:
            self._buckets[name][task_id] = task

    def upsert(self, task: Task, now: datetime) -> None:
        """Store an open task in the future set if scheduled for a later day, else the active set."""
        self._discard(task.id)
        bucket = FUTURE if is_future_task(task, now) else ACTIVE
        self._buckets[bucket][task.id] = task

    def mark_completed(self, task: Task) -> None:
        """Move a task to the completed set; it never re-enters the active set."""
        self._discard(task.id)
        self._buckets[COMPLETED][task.id] = task

    def remove(self, task_id: str) -> None:
        self._discard(task_id)

    def promote_due(self, now: datetime) -> List[Task]:
        """Move future tasks whose day has arrived into the active set."""
        promoted = [task for task in self._buckets[FUTURE].values() if not is_future_task(task, now)]
        for task in promoted:
            del self._buckets[FUTURE][task.id]
            self._buckets[ACTIVE][task.id] = task
        return promoted

    def _discard(self, task_id: str) -> None:
        for bucket in self._buckets.values():
            bucket.pop(task_id, None)


async def fetch_tasks(
    store: DocumentStore,
    collection_path: str = TASKS_COLLECTION,
    limit: Optional[int] = None,
) -> List[dict]:
    """Fetch task documents from the store, oldest first.

    Raises:
        StoreError: If the store query fails
    """
    return await store.query_ordered(collection_path, "createdAt", "asc", limit)
