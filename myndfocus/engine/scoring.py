"""Task scoring for myndfocus.

Two strategies are provided:

- ANALYTICAL: weighted linear combination of priority, reminder interval,
  age, deadline proximity and subtask count, scaled down by a reschedule
  penalty and clamped to [0, 1].
- DISPLAY: the analytical score plus large fixed bonuses for the pinned focus
  task and for a task whose timer is running, so the top slot stays put
  across re-renders.

Scoring is a pure function of the task and ``now``; it never raises and never
mutates its input.
"""

import logging
import math
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import ValidationError

from myndfocus.config import PrioritizationConfig
from myndfocus.engine.normalize import TaskLike, normalize_task
from myndfocus.models.results import ScoreResult
from myndfocus.models.task import CanonicalTask, parse_timestamp

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0
SECONDS_PER_DAY = 86400.0

DEFAULT_CONFIG = PrioritizationConfig()


class ScoringStrategy(str, Enum):
    """Scoring formula selected by the caller."""
    ANALYTICAL = "analytical"
    DISPLAY = "display"


def _finite(value: float) -> float:
    """Replace non-finite intermediate values with 0."""
    return value if math.isfinite(value) else 0.0


def _canonical(task: Union[TaskLike, CanonicalTask]) -> Optional[CanonicalTask]:
    if isinstance(task, CanonicalTask):
        return task
    try:
        return normalize_task(task)
    except (TypeError, ValidationError) as e:
        logger.debug(f"Cannot score malformed task: {e}")
        return None


def priority_component(task: CanonicalTask, now: datetime, config: PrioritizationConfig) -> float:
    """Base priority weight, boosted when the task is due within ``due_soon_hours``."""
    weight = config.priority_weight(task.priority)
    if task.scheduled_for is not None:
        hours_until_due = _finite((task.scheduled_for - now).total_seconds() / SECONDS_PER_HOUR)
        if hours_until_due <= config.due_soon_hours:
            weight *= config.deadline_boost
    return weight


def age_component(task: CanonicalTask, now: datetime, config: PrioritizationConfig) -> float:
    if task.created_at is None:
        return 0.0
    age_in_days = _finite((now - task.created_at).total_seconds() / SECONDS_PER_DAY)
    return min(max(age_in_days, 0.0) * config.age_weight, 1.0)


def deadline_component(task: CanonicalTask, now: datetime, config: PrioritizationConfig) -> float:
    if task.scheduled_for is None:
        return 0.0
    days_until_due = _finite((task.scheduled_for - now).total_seconds() / SECONDS_PER_DAY)
    score = max(0.0, 1.0 - days_until_due * config.deadline_weight)
    if days_until_due <= 1:
        score *= config.deadline_boost
    return score


def compute_score(
    task: Union[TaskLike, CanonicalTask],
    now: datetime,
    config: Optional[PrioritizationConfig] = None,
) -> ScoreResult:
    """Compute the analytical ranking score of a task.

    Args:
        task: Task model, raw document or CanonicalTask
        now: Current instant (naive values are taken as UTC)
        config: Weights to use (defaults to the built-in weights)

    Returns:
        ScoreResult with a score in [0, 1] and the weighted contribution of
        each component. Unscorable input yields a zero score.
    """
    config = config or DEFAULT_CONFIG
    canonical = _canonical(task)
    if canonical is None:
        return ScoreResult(score=0.0, breakdown={})
    now = parse_timestamp(now)

    priority = _finite(priority_component(canonical, now, config)) * config.priority_coefficient
    interval = _finite(config.interval_weight(canonical.interval)) * config.interval_coefficient
    age = _finite(age_component(canonical, now, config)) * config.age_coefficient
    deadline = _finite(deadline_component(canonical, now, config)) * config.deadline_coefficient
    subtask = _finite(canonical.subtask_count * config.subtask_weight) * config.subtask_coefficient

    raw_score = priority + interval + age + deadline + subtask
    penalty = canonical.reschedule_count * config.reschedule_penalty_weight
    score = _finite(raw_score * (1 - penalty))

    return ScoreResult(
        score=min(max(score, 0.0), 1.0),
        breakdown={
            "priorityComponent": priority,
            "intervalComponent": interval,
            "ageComponent": age,
            "deadlineComponent": deadline,
            "subtaskComponent": subtask,
            "reschedulePenalty": penalty,
        },
    )


def compute_display_score(
    task: Union[TaskLike, CanonicalTask],
    now: datetime,
    config: Optional[PrioritizationConfig] = None,
    pinned_task_id: Optional[str] = None,
) -> ScoreResult:
    """Compute the UI-stable display score of a task.

    The analytical score plus ``pin_bonus`` when the task is the pinned focus
    task and ``active_timer_bonus`` when its timer is running. Not clamped.
    """
    config = config or DEFAULT_CONFIG
    canonical = _canonical(task)
    if canonical is None:
        return ScoreResult(score=0.0, breakdown={})

    base = compute_score(canonical, now, config)
    pin = config.pin_bonus if pinned_task_id is not None and canonical.id == pinned_task_id else 0.0
    timer = config.active_timer_bonus if canonical.timer_active else 0.0

    breakdown = dict(base.breakdown)
    breakdown["pinBonus"] = pin
    breakdown["activeTimerBonus"] = timer
    return ScoreResult(score=base.score + pin + timer, breakdown=breakdown)


def score_task(
    task: Union[TaskLike, CanonicalTask],
    now: datetime,
    strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL,
    config: Optional[PrioritizationConfig] = None,
    pinned_task_id: Optional[str] = None,
) -> ScoreResult:
    """Score a task with the selected strategy."""
    if ScoringStrategy(strategy) == ScoringStrategy.DISPLAY:
        return compute_display_score(task, now, config, pinned_task_id=pinned_task_id)
    return compute_score(task, now, config)
