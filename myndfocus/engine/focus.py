"""Focus tracking for myndfocus.

The ranking engine itself is stateless. State shared across ranking passes
(the pinned focus task, the previous top task, ids with a lifecycle operation
in flight) lives in an explicitly owned ``FocusContext`` that callers inject.
"""

import logging
import threading
from typing import List, Optional, Protocol, Set

from myndfocus.models.results import RankingResult
from myndfocus.models.task import Task

logger = logging.getLogger(__name__)


class FocusObserver(Protocol):
    """Receiver of ranking notifications (the list/view layer)."""

    def on_focus_changed(self, task: Optional[Task]) -> None:
        ...

    def on_ranking_updated(self, ordered: List[Task]) -> None:
        ...


class ProcessingSet:
    """Ids with a lifecycle operation in flight.

    ``acquire`` is an atomic check-and-add: of two concurrent callers for the
    same id exactly one gets True.
    """

    def __init__(self):
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def acquire(self, task_id: str) -> bool:
        with self._lock:
            if task_id in self._ids:
                return False
            self._ids.add(task_id)
            return True

    def release(self, task_id: str) -> None:
        with self._lock:
            self._ids.discard(task_id)

    def __contains__(self, task_id: str) -> bool:
        with self._lock:
            return task_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)


class FocusContext:
    """Mutable ranking state owned by one list/view instance."""

    def __init__(self, pinned_task_id: Optional[str] = None):
        self.pinned_task_id = pinned_task_id
        self.previous_top_id: Optional[str] = None
        self.processing = ProcessingSet()

    def pin(self, task_id: Optional[str]) -> None:
        """Pin a task as the focus task for display ordering (None unpins)."""
        self.pinned_task_id = task_id

    def forget(self, task_id: str) -> None:
        """Drop references to a task that left the active set."""
        if self.pinned_task_id == task_id:
            self.pinned_task_id = None


class FocusTracker:
    """Forwards ranking passes to an observer, reporting focus changes once."""

    def __init__(self, context: FocusContext, observer: Optional[FocusObserver] = None):
        self.context = context
        self._observer = observer
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop delivering callbacks (e.g. when the view unmounts)."""
        self._disposed = True
        self._observer = None

    def update(self, result: RankingResult) -> bool:
        """Record a ranking pass and notify the observer.

        Args:
            result: Output of ``rank``

        Returns:
            True if the focus task changed since the previous pass
        """
        top_id = result.top_id
        changed = top_id != self.context.previous_top_id
        self.context.previous_top_id = top_id

        if self._disposed or self._observer is None:
            return changed

        self._observer.on_ranking_updated(list(result.ordered))
        if changed:
            logger.debug(f"Focus changed to {top_id}")
            self._observer.on_focus_changed(result.top)
        return changed
