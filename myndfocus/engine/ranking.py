"""Task ranking for myndfocus.

Sorts the active task set by score with a deterministic tie-break chain and
identifies the single focus task. This function is deterministic - same
inputs always produce same outputs.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from myndfocus.config import PrioritizationConfig
from myndfocus.engine.focus import FocusContext
from myndfocus.engine.normalize import as_task, is_future_task, normalize_task
from myndfocus.engine.scoring import DEFAULT_CONFIG, ScoringStrategy, score_task
from myndfocus.models.results import PriorityExplanation, RankingResult, ScoreResult
from myndfocus.models.task import CanonicalTask, Task, parse_timestamp

logger = logging.getLogger(__name__)


class _Entry:
    """A task paired with its canonical form and score for one pass."""

    __slots__ = ("task", "canonical", "result", "priority_weight")

    def __init__(self, task: Task, canonical: CanonicalTask, result: ScoreResult, priority_weight: float):
        self.task = task
        self.canonical = canonical
        self.result = result
        self.priority_weight = priority_weight


def _coerce(raw) -> Optional[Tuple[Task, CanonicalTask]]:
    """Validate one input entry; None for anything that cannot be ranked."""
    if not isinstance(raw, (Task, Mapping)):
        return None
    try:
        task = as_task(raw)
        canonical = normalize_task(task)
    except (TypeError, ValidationError) as e:
        logger.warning(f"Skipping malformed task: {type(e).__name__}")
        return None
    if not canonical.id:
        return None
    return task, canonical


def partition_tasks(tasks: Iterable, now: datetime) -> Tuple[List[Task], List[Task], List[Task]]:
    """Split tasks into active, future and completed lists.

    Malformed entries and entries without an id are dropped.

    Args:
        tasks: Task models or raw documents
        now: Current instant

    Returns:
        Tuple of (active, future, completed), each in input order
    """
    active: List[Task] = []
    future: List[Task] = []
    completed: List[Task] = []
    for raw in tasks or []:
        coerced = _coerce(raw)
        if coerced is None:
            continue
        task, canonical = coerced
        if canonical.completed:
            completed.append(task)
        elif is_future_task(canonical, now):
            future.append(task)
        else:
            active.append(task)
    return active, future, completed


def _tie_groups(entries: List[_Entry], epsilon: float) -> List[List[_Entry]]:
    """Chain entries whose neighbouring scores differ by less than epsilon.

    Grouping depends only on the scores, so near-equal tasks stay together
    and the resulting order is transitive.
    """
    groups: List[List[_Entry]] = []
    for entry in sorted(entries, key=lambda e: (-e.result.score, e.canonical.id)):
        if groups:
            gap = groups[-1][-1].result.score - entry.result.score
            if gap == 0 or gap < epsilon:
                groups[-1].append(entry)
                continue
        groups.append([entry])
    return groups


def _tie_break_key(entry: _Entry):
    created = entry.canonical.created_at
    # Older first; tasks without a creation time go last
    return (
        -entry.priority_weight,
        created is None,
        created.timestamp() if created is not None else 0.0,
        entry.canonical.id,
    )


def rank(
    tasks: Iterable,
    now: datetime,
    config: Optional[PrioritizationConfig] = None,
    strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL,
    context: Optional[FocusContext] = None,
) -> RankingResult:
    """Rank the active tasks of a collection.

    Completed tasks, future tasks (scheduled for a later day) and malformed
    entries (not a task, or missing an id) are silently excluded. Never raises
    on bad data.

    Tasks are sorted:
    1. By score, descending. Scores chained by gaps smaller than ``epsilon``
       form one tie group
    2. Within a tie group by base priority weight, descending
    3. Then by creation time, oldest first
    4. Then by id, so the order is total

    Args:
        tasks: Task models or raw documents
        now: Current instant
        config: Weights to use (defaults to the built-in weights)
        strategy: ANALYTICAL for pure ranking, DISPLAY for UI-stable ranking
        context: Focus context supplying the pinned task for DISPLAY

    Returns:
        RankingResult with the ordered tasks, the focus task and every score
    """
    config = config or DEFAULT_CONFIG
    now = parse_timestamp(now)
    pinned_task_id = context.pinned_task_id if context else None

    entries: List[_Entry] = []
    seen = set()
    for raw in tasks or []:
        coerced = _coerce(raw)
        if coerced is None:
            continue
        task, canonical = coerced
        if canonical.completed or is_future_task(canonical, now):
            continue
        if canonical.id in seen:
            logger.warning(f"Duplicate task id {canonical.id} in ranking input; keeping first")
            continue
        seen.add(canonical.id)

        result = score_task(canonical, now, strategy=strategy, config=config, pinned_task_id=pinned_task_id)
        entries.append(_Entry(task, canonical, result, config.priority_weight(canonical.priority)))

    entries = [
        entry
        for group in _tie_groups(entries, config.epsilon)
        for entry in sorted(group, key=_tie_break_key)
    ]

    ordered = [entry.task for entry in entries]
    logger.debug(f"Ranked {len(ordered)} active tasks ({ScoringStrategy(strategy).value})")
    return RankingResult(
        ordered=ordered,
        top=ordered[0] if ordered else None,
        scores={entry.canonical.id: entry.result for entry in entries},
    )


def explain_ranking(
    result: RankingResult,
    task_id: str,
    config: Optional[PrioritizationConfig] = None,
) -> Optional[PriorityExplanation]:
    """Explain why a task holds its position in a ranking.

    Returns:
        PriorityExplanation, or None if the task is not in the ranking
    """
    config = config or DEFAULT_CONFIG
    for index, task in enumerate(result.ordered):
        if task.id != task_id:
            continue
        canonical = normalize_task(task)
        score = result.scores.get(task_id, ScoreResult(score=0.0))
        return PriorityExplanation(
            task_id=task_id,
            task_text=task.text,
            priority=canonical.priority.value,
            interval_weight=config.interval_weight(canonical.interval),
            score=score.score,
            breakdown=score.breakdown,
            rank=index + 1,
            total_tasks=len(result.ordered),
        )
    return None
