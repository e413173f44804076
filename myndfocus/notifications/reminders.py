"""Task reminders for myndfocus.

Reminders are kept as documents in the ``notifications`` collection, one per
task (id ``task_<task id>``), so rescheduling replaces the pending reminder
instead of stacking a second one. Delivery (push) is left to whoever polls
``due_reminders``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Union

from myndfocus.lifecycle.errors import StoreError
from myndfocus.lifecycle.protocols import DocumentStore
from myndfocus.models.constants import NOTIFICATIONS_COLLECTION
from myndfocus.models.results import ReminderHandle
from myndfocus.models.task import parse_timestamp

logger = logging.getLogger(__name__)


def notification_id_for(task_id: str) -> str:
    return f"task_{task_id}"


class StoreReminderScheduler:
    """ReminderScheduler that persists reminders in the document store."""

    def __init__(
        self,
        store: DocumentStore,
        collection_path: str = NOTIFICATIONS_COLLECTION,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.collection_path = collection_path
        self.clock = clock

    async def schedule_reminder(self, task_id: str, when_or_interval_minutes: Union[int, datetime]) -> ReminderHandle:
        """Schedule (or replace) the reminder for a task.

        Args:
            task_id: Task to remind about
            when_or_interval_minutes: Absolute fire time, or minutes from now

        Returns:
            ReminderHandle with the notification id and fire time

        Raises:
            ValueError: If the interval is not a positive number of minutes
            StoreError: If the reminder cannot be persisted
        """
        now = parse_timestamp(self.clock())
        interval = None
        if isinstance(when_or_interval_minutes, datetime):
            fire_at = parse_timestamp(when_or_interval_minutes)
        else:
            interval = int(when_or_interval_minutes)
            if interval <= 0:
                raise ValueError(f"Reminder interval must be positive, got {when_or_interval_minutes!r}")
            fire_at = now + timedelta(minutes=interval)

        notification_id = notification_id_for(task_id)
        fields = {
            "taskId": task_id,
            "nextReminderTime": fire_at.isoformat(),
            "status": "scheduled",
            "scheduledAt": now.isoformat(),
        }
        if interval is not None:
            fields["intervalMinutes"] = interval

        await self.store.create_or_replace(self.collection_path, notification_id, fields)
        logger.debug(f"Scheduled reminder {notification_id} for {fire_at.isoformat()}")
        return ReminderHandle(notification_id=notification_id, next_reminder_time=fire_at)

    async def cancel_reminder(self, notification_id: str) -> None:
        """Cancel a pending reminder; cancelling an unknown reminder is a no-op."""
        try:
            await self.store.remove(self.collection_path, notification_id)
        except StoreError as e:
            if e.kind != StoreError.NOT_FOUND:
                raise
            logger.debug(f"Reminder {notification_id} was not pending")

    async def due_reminders(self, now: datetime = None) -> List[dict]:
        """Pending reminders whose fire time is at or before ``now``, earliest first."""
        now = parse_timestamp(now or self.clock())
        documents = await self.store.query_ordered(self.collection_path, "nextReminderTime", "asc")
        due = []
        for document in documents:
            fire_at = parse_timestamp(document.get("nextReminderTime"))
            if fire_at is not None and fire_at <= now:
                due.append(document)
        return due
