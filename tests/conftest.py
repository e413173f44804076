"""Pytest fixtures and configuration for myndfocus tests."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from myndfocus.database.database import Base
from myndfocus.database.repository import SqlDocumentStore
from myndfocus.lifecycle.errors import StoreError
from myndfocus.models.results import ReminderHandle
from myndfocus.models.task import Task


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class FakeDocumentStore:
    """In-memory DocumentStore with failure injection and an optional gate.

    When ``gate`` is set, every write waits for it, which lets tests observe
    an operation while it is in flight.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.fail_with: Optional[StoreError] = None
        self.gate: Optional[asyncio.Event] = None

    async def _write(self, call: tuple) -> None:
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def create_or_replace(self, collection_path, doc_id, fields):
        await self._write(("create_or_replace", collection_path, doc_id, dict(fields)))
        self.collections.setdefault(collection_path, {})[doc_id] = dict(fields)

    async def patch(self, collection_path, doc_id, fields):
        await self._write(("patch", collection_path, doc_id, dict(fields)))
        documents = self.collections.setdefault(collection_path, {})
        if doc_id not in documents:
            raise StoreError(StoreError.NOT_FOUND, f"{collection_path}/{doc_id} not found")
        documents[doc_id].update(fields)

    async def remove(self, collection_path, doc_id):
        await self._write(("remove", collection_path, doc_id))
        documents = self.collections.setdefault(collection_path, {})
        if doc_id not in documents:
            raise StoreError(StoreError.NOT_FOUND, f"{collection_path}/{doc_id} not found")
        del documents[doc_id]

    async def query_ordered(self, collection_path, sort_field, direction="asc", limit=None):
        documents = [{**fields, "id": doc_id} for doc_id, fields in self.collections.get(collection_path, {}).items()]
        documents.sort(key=lambda d: (d.get(sort_field) is None, str(d.get(sort_field)), d["id"]), reverse=(direction == "desc"))
        return documents[:limit] if limit is not None else documents

    def seed(self, collection_path: str, documents: List[Dict[str, Any]]) -> None:
        for document in documents:
            fields = {k: v for k, v in document.items() if k != "id"}
            self.collections.setdefault(collection_path, {})[document["id"]] = fields


class FakeReminderScheduler:
    """Records scheduled and cancelled reminders."""

    def __init__(self, now: datetime):
        self.now = now
        self.scheduled: List[tuple] = []
        self.cancelled: List[str] = []
        self.fail = False

    async def schedule_reminder(self, task_id, when_or_interval_minutes):
        if self.fail:
            raise RuntimeError("push service unavailable")
        self.scheduled.append((task_id, when_or_interval_minutes))
        if isinstance(when_or_interval_minutes, datetime):
            fire_at = when_or_interval_minutes
        else:
            fire_at = self.now + timedelta(minutes=when_or_interval_minutes)
        return ReminderHandle(notification_id=f"task_{task_id}", next_reminder_time=fire_at)

    async def cancel_reminder(self, notification_id):
        self.cancelled.append(notification_id)


class RecordingObserver:
    """FocusObserver that records every callback."""

    def __init__(self):
        self.focus_changes: List[Optional[str]] = []
        self.rankings: List[List[str]] = []

    def on_focus_changed(self, task):
        self.focus_changes.append(task.id if task else None)

    def on_ranking_updated(self, ordered):
        self.rankings.append([task.id for task in ordered])


@pytest.fixture
def now():
    """Fixed instant used by every scoring test."""
    return datetime(2026, 1, 26, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_task_base(now):
    """Base task document (camelCase, as stored) that can be overridden."""
    return {
        "id": str(uuid.uuid4()),
        "text": "Test Task",
        "priority": "Medium",
        "intervals": [],
        "createdAt": now.isoformat(),
        "rescheduleCount": 0,
        "subtasks": [],
        "completed": False,
    }


@pytest.fixture
def make_task(sample_task_base):
    """Factory for Task objects with a fresh id and overrides."""
    def _make(**overrides):
        return Task.model_validate({**sample_task_base, "id": str(uuid.uuid4()), **overrides})
    return _make


@pytest.fixture
def sample_task(make_task):
    return make_task()


@pytest.fixture
def fake_store():
    return FakeDocumentStore()


@pytest.fixture
def fake_reminders(now):
    return FakeReminderScheduler(now)


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture(scope="function")
def session_factory():
    """Session factory over an in-memory SQLite database created fresh for each test."""
    from myndfocus.database import models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlDocumentStore(session_factory)
