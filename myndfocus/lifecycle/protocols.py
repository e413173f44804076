"""Contracts for the collaborators the task lifecycle depends on.

Implementations raise ``StoreError`` on failure.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from myndfocus.models.results import ReminderHandle


class DocumentStore(Protocol):
    """Key/document CRUD surface keyed by (collection path, document id)."""

    async def create_or_replace(self, collection_path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        ...

    async def patch(self, collection_path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        ...

    async def remove(self, collection_path: str, doc_id: str) -> None:
        ...

    async def query_ordered(
        self,
        collection_path: str,
        sort_field: str,
        direction: str = "asc",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Documents ordered by one field; each dict carries its ``id``."""
        ...


class ReminderScheduler(Protocol):
    """Schedules and cancels task reminders."""

    async def schedule_reminder(self, task_id: str, when_or_interval_minutes: Union[int, datetime]) -> ReminderHandle:
        ...

    async def cancel_reminder(self, notification_id: str) -> None:
        ...
