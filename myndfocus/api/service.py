"""Task service wiring the ranking engine to the lifecycle adapter.

One ``TaskService`` owns the local task collection and focus context of a
single user's list; the HTTP layer talks to nothing else.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from myndfocus.config import PrioritizationConfig, load_config
from myndfocus.engine.focus import FocusContext, FocusTracker, FocusObserver
from myndfocus.engine.ranking import explain_ranking, rank
from myndfocus.engine.scoring import ScoringStrategy
from myndfocus.lifecycle.adapter import LifecycleAdapter, LifecycleResult, utc_now
from myndfocus.lifecycle.collection import TaskCollection, fetch_tasks
from myndfocus.lifecycle.protocols import DocumentStore, ReminderScheduler
from myndfocus.models.constants import TASKS_COLLECTION
from myndfocus.models.results import PriorityExplanation, RankingResult
from myndfocus.models.task import Task

logger = logging.getLogger(__name__)


class TaskService:
    """Ranks and mutates one user's task list."""

    def __init__(
        self,
        store: DocumentStore,
        reminders: ReminderScheduler,
        config: Optional[PrioritizationConfig] = None,
        collection_path: str = TASKS_COLLECTION,
        observer: Optional[FocusObserver] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.config = config or load_config()
        self.collection_path = collection_path
        self.clock = clock
        self.collection = TaskCollection()
        self.context = FocusContext()
        self.tracker = FocusTracker(self.context, observer)
        self.adapter = LifecycleAdapter(
            store,
            reminders,
            collection=self.collection,
            context=self.context,
            tracker=self.tracker,
            config=self.config,
            collection_path=collection_path,
            clock=clock,
        )

    async def refresh(self) -> int:
        """Reload the task collection from the store.

        Returns:
            Number of documents loaded

        Raises:
            StoreError: If the store query fails
        """
        documents = await fetch_tasks(self.store, self.collection_path)
        self.collection.load(documents, self.clock())
        self.adapter.publish()
        return len(documents)

    def ranking(self, strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL) -> RankingResult:
        """Rank the active set, first promoting future tasks whose day has come."""
        now = self.clock()
        promoted = self.collection.promote_due(now)
        if promoted:
            logger.debug(f"Promoted {len(promoted)} future tasks into the active set")
        result = rank(self.collection.active(), now, config=self.config, strategy=strategy, context=self.context)
        self.tracker.update(result)
        return result

    def explain(self, task_id: str, strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL) -> Optional[PriorityExplanation]:
        return explain_ranking(self.ranking(strategy), task_id, self.config)

    def find(self, task_id: str) -> Optional[Task]:
        return self.collection.get(task_id)

    def pin(self, task_id: Optional[str]) -> None:
        self.context.pin(task_id)

    async def complete(self, task: Task) -> LifecycleResult:
        return await self.adapter.complete(task)

    async def delete(self, task: Task) -> LifecycleResult:
        return await self.adapter.delete(task)

    async def reschedule(self, task: Task) -> LifecycleResult:
        return await self.adapter.reschedule(task)
