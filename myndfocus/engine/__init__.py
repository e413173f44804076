"""Prioritization engine for myndfocus."""

from myndfocus.engine.normalize import normalize_task, is_future_task, is_past_due, shortest_interval
from myndfocus.engine.scoring import ScoringStrategy, compute_score, compute_display_score, score_task
from myndfocus.engine.ranking import rank, partition_tasks, explain_ranking
from myndfocus.engine.focus import FocusContext, FocusTracker, FocusObserver, ProcessingSet
from myndfocus.engine.xp import completion_xp

__all__ = [
    "normalize_task",
    "is_future_task",
    "is_past_due",
    "shortest_interval",
    "ScoringStrategy",
    "compute_score",
    "compute_display_score",
    "score_task",
    "rank",
    "partition_tasks",
    "explain_ranking",
    "FocusContext",
    "FocusTracker",
    "FocusObserver",
    "ProcessingSet",
    "completion_xp",
]
