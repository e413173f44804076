"""Task lifecycle adapter for myndfocus.

Applies complete / delete / reschedule transitions to the local task
collection and mirrors them to the document store and reminder scheduler.

Local mutations are optimistic: the collection changes before the store
write, so the next ranking pass already reflects them. If the store write
fails the local mutation is rolled back and a ``StoreFailure`` is returned,
leaving the task visible for a retry.

Operations never raise the lifecycle error taxonomy; they return a
``LifecycleResult``. A store write that is already under way keeps running
if the caller stops waiting for it, and still releases the task's in-flight
marker when it settles.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from myndfocus.config import PrioritizationConfig
from myndfocus.engine.focus import FocusContext, FocusTracker
from myndfocus.engine.normalize import as_task, shortest_interval
from myndfocus.engine.ranking import rank
from myndfocus.engine.scoring import DEFAULT_CONFIG, ScoringStrategy
from myndfocus.engine.xp import completion_xp
from myndfocus.lifecycle.collection import TaskCollection
from myndfocus.lifecycle.errors import (
    AlreadyProcessing,
    InvalidTask,
    LifecycleError,
    StoreError,
    StoreFailure,
)
from myndfocus.lifecycle.protocols import DocumentStore, ReminderScheduler
from myndfocus.models.constants import TASKS_COLLECTION
from myndfocus.models.results import ReminderHandle
from myndfocus.models.task import Task, TimerState

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleResult:
    """Outcome of a lifecycle operation."""

    def __init__(
        self,
        ok: bool,
        task: Optional[Task] = None,
        error: Optional[LifecycleError] = None,
        xp_awarded: int = 0,
        reminder: Optional[ReminderHandle] = None,
    ):
        self.ok = ok
        self.task = task
        self.error = error
        self.xp_awarded = xp_awarded
        self.reminder = reminder

    @classmethod
    def success(cls, task: Task, **kwargs) -> "LifecycleResult":
        return cls(True, task=task, **kwargs)

    @classmethod
    def failure(cls, error: LifecycleError, task: Optional[Task] = None) -> "LifecycleResult":
        return cls(False, task=task, error=error)

    def __repr__(self) -> str:
        status = "ok" if self.ok else type(self.error).__name__
        task_id = self.task.id if self.task else None
        return f"LifecycleResult({status}, task={task_id})"


class LifecycleAdapter:
    """Completes, deletes and reschedules tasks."""

    def __init__(
        self,
        store: DocumentStore,
        reminders: ReminderScheduler,
        collection: Optional[TaskCollection] = None,
        context: Optional[FocusContext] = None,
        tracker: Optional[FocusTracker] = None,
        config: Optional[PrioritizationConfig] = None,
        strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL,
        collection_path: str = TASKS_COLLECTION,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.reminders = reminders
        self.collection = collection if collection is not None else TaskCollection()
        self.context = context or (tracker.context if tracker else FocusContext())
        self.tracker = tracker
        self.config = config or DEFAULT_CONFIG
        self.strategy = strategy
        self.collection_path = collection_path
        self.clock = clock

    async def complete(self, task) -> LifecycleResult:
        """Mark a task completed and persist the transition."""
        return await self._run("complete", task, self._complete)

    async def delete(self, task) -> LifecycleResult:
        """Remove a task locally and from the store."""
        return await self._run("delete", task, self._delete)

    async def reschedule(self, task) -> LifecycleResult:
        """Defer a task by one reminder interval, incrementing its reschedule count."""
        return await self._run("reschedule", task, self._reschedule)

    def publish(self) -> None:
        """Re-rank the active set and notify the tracker, if any."""
        if self.tracker is None or self.tracker.disposed:
            return
        result = rank(
            self.collection.active(),
            self.clock(),
            config=self.config,
            strategy=self.strategy,
            context=self.context,
        )
        self.tracker.update(result)

    def _validate(self, raw) -> Tuple[Optional[Task], Optional[LifecycleError]]:
        if raw is None:
            return None, InvalidTask(None, "No task given")
        try:
            task = as_task(raw)
        except (TypeError, ValidationError):
            return None, InvalidTask(None, "Malformed task")
        if not task.id:
            return None, InvalidTask(None, "Task has no id")
        # Prefer the collection's copy so counters build on the latest state
        return self.collection.get(task.id) or task, None

    async def _run(
        self,
        action: str,
        raw,
        operation: Callable[[Task], Awaitable[LifecycleResult]],
    ) -> LifecycleResult:
        task, error = self._validate(raw)
        if error is not None:
            logger.warning(f"Cannot {action} task: {error.message}")
            return LifecycleResult.failure(error)

        if not self.context.processing.acquire(task.id):
            logger.debug(f"Ignoring {action} for task {task.id}: already processing")
            return LifecycleResult.failure(AlreadyProcessing(task.id, f"Task {task.id} is already being processed"), task)

        inner = asyncio.ensure_future(self._guarded(action, task, operation))
        return await asyncio.shield(inner)

    async def _guarded(self, action: str, task: Task, operation) -> LifecycleResult:
        try:
            return await operation(task)
        finally:
            self.context.processing.release(task.id)
            logger.debug(f"Finished {action} for task {task.id}")

    async def _store_call(self, awaitable: Awaitable) -> Any:
        try:
            return await awaitable
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(StoreError.UNKNOWN, f"{type(e).__name__}: {e}") from e

    async def _cancel_reminder_quietly(self, notification_id: Optional[str]) -> None:
        if not notification_id:
            return
        try:
            await self.reminders.cancel_reminder(notification_id)
        except Exception as e:
            logger.warning(f"Failed to cancel reminder {notification_id}: {type(e).__name__}: {e}")

    async def _restore_reminder(self, task: Task) -> None:
        try:
            await self.reminders.schedule_reminder(task.id, task.next_reminder_time)
        except Exception as e:
            logger.warning(f"Failed to restore reminder for task {task.id}: {type(e).__name__}: {e}")

    def _rollback(self, action: str, task: Task, snapshot, error: StoreError) -> LifecycleResult:
        logger.error(f"Failed to {action} task {task.id}: {error.kind}: {error.message}; rolling back")
        self.collection.restore(task.id, snapshot)
        self.publish()
        return LifecycleResult.failure(StoreFailure(task.id, error), task)

    async def _complete(self, task: Task) -> LifecycleResult:
        if task.completed or self.collection.is_completed(task.id):
            return LifecycleResult.failure(InvalidTask(task.id, "Task is already completed"), task)

        now = self.clock()
        snapshot = self.collection.snapshot(task.id)
        timer = (task.timer_state or TimerState()).model_copy(
            update={"is_active": False, "is_completed": True, "completed_at": now}
        )
        updated = task.model_copy(update={"completed": True, "completed_at": now, "timer_state": timer})

        self.collection.mark_completed(updated)
        previous_pin = self.context.pinned_task_id
        self.context.forget(task.id)
        self.publish()

        fields: Dict[str, Any] = {
            "completed": True,
            "completedAt": now.isoformat(),
            "timerState": timer.to_document(),
        }
        try:
            await self._store_call(self.store.patch(self.collection_path, task.id, fields))
        except StoreError as e:
            self.context.pinned_task_id = previous_pin
            return self._rollback("complete", task, snapshot, e)

        await self._cancel_reminder_quietly(task.notification_id)
        xp = completion_xp(updated)
        logger.debug(f"Completed task {task.id} (+{xp} XP)")
        return LifecycleResult.success(updated, xp_awarded=xp)

    async def _delete(self, task: Task) -> LifecycleResult:
        snapshot = self.collection.snapshot(task.id)
        self.collection.remove(task.id)
        previous_pin = self.context.pinned_task_id
        self.context.forget(task.id)
        self.publish()

        try:
            await self._store_call(self.store.remove(self.collection_path, task.id))
        except StoreError as e:
            if e.kind != StoreError.NOT_FOUND:
                self.context.pinned_task_id = previous_pin
                return self._rollback("delete", task, snapshot, e)
            logger.debug(f"Task {task.id} was already gone from the store")

        await self._cancel_reminder_quietly(task.notification_id)
        logger.debug(f"Deleted task {task.id}")
        return LifecycleResult.success(task)

    async def _schedule_reminder(self, task: Task, interval: int, now: datetime) -> ReminderHandle:
        try:
            return await self.reminders.schedule_reminder(task.id, interval)
        except Exception as e:
            logger.warning(f"Failed to schedule reminder for task {task.id}: {type(e).__name__}: {e}")
            return ReminderHandle(
                notification_id=f"task_{task.id}",
                next_reminder_time=now + timedelta(minutes=interval),
            )

    async def _reschedule(self, task: Task) -> LifecycleResult:
        if task.completed or self.collection.is_completed(task.id):
            return LifecycleResult.failure(InvalidTask(task.id, "Completed tasks cannot be rescheduled"), task)

        now = self.clock()
        snapshot = self.collection.snapshot(task.id)
        interval = shortest_interval(task) or self.config.default_interval_minutes

        handle = await self._schedule_reminder(task, interval, now)
        replaced = task.notification_id == handle.notification_id

        timer = TimerState(
            is_active=True,
            is_completed=False,
            start_time=now,
            duration=interval,
            notification_status="scheduled",
        )
        updated = task.model_copy(update={
            "reschedule_count": task.reschedule_count + 1,
            "notification_id": handle.notification_id,
            "next_reminder_time": handle.next_reminder_time,
            "timer_state": timer,
            "completed": False,
        })
        self.collection.upsert(updated, now)
        self.publish()

        fields: Dict[str, Any] = {
            "rescheduleCount": updated.reschedule_count,
            "notificationId": handle.notification_id,
            "nextReminderTime": handle.next_reminder_time.isoformat(),
            "timerState": timer.to_document(),
            "completed": False,
        }
        try:
            await self._store_call(self.store.patch(self.collection_path, task.id, fields))
        except StoreError as e:
            if replaced and task.next_reminder_time is not None:
                await self._restore_reminder(task)
            else:
                await self._cancel_reminder_quietly(handle.notification_id)
            return self._rollback("reschedule", task, snapshot, e)

        if not replaced:
            await self._cancel_reminder_quietly(task.notification_id)

        logger.debug(f"Rescheduled task {task.id} (count={updated.reschedule_count}, next={handle.next_reminder_time.isoformat()})")
        return LifecycleResult.success(updated, reminder=handle)
