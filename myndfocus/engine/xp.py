"""Completion XP for myndfocus.

Completing a task awards XP scaled by its priority. Every reschedule costs
one point, but a completion is always worth at least 1 XP.
"""

from myndfocus.engine.normalize import TaskLike, normalize_task
from myndfocus.models.constants import BASE_XP, PRIORITY_XP_MULTIPLIERS


def completion_xp(task: TaskLike, base_xp: int = BASE_XP) -> int:
    """Calculate the XP awarded for completing a task.

    Args:
        task: Task being completed
        base_xp: XP for a lowest-priority task that was never rescheduled

    Returns:
        XP to award (>= 1)
    """
    canonical = normalize_task(task)
    multiplier = PRIORITY_XP_MULTIPLIERS.get(canonical.priority.value, 1)
    penalty = min(canonical.reschedule_count, base_xp - 1)
    return max(1, base_xp * multiplier - penalty)
