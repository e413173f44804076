"""Constants for myndfocus.

This module centralizes the default weights and magic numbers used by the
scoring engine and the task lifecycle.
"""

from myndfocus.models.task import Priority


# Base weight per priority level
PRIORITY_WEIGHTS = {
    Priority.LOWEST.value: 1.00,
    Priority.MEDIUM.value: 1.50,
    Priority.HIGH.value: 2.00,
    Priority.URGENT.value: 3.00,
}

# Weight for the shortest reminder cadence (minutes); unmapped cadences score 0
INTERVAL_WEIGHTS = {
    5: 0.40,
    10: 0.30,
    15: 0.20,
    30: 0.10,
}

AGE_WEIGHT = 0.02  # per day, capped at 1
DEADLINE_WEIGHT = 0.08  # per day until due
SUBTASK_WEIGHT = 0.15  # per subtask
RESCHEDULE_PENALTY_WEIGHT = 0.05  # per reschedule

# Linear combination coefficients
PRIORITY_COEFFICIENT = 0.35
INTERVAL_COEFFICIENT = 0.20
AGE_COEFFICIENT = 0.10
DEADLINE_COEFFICIENT = 0.20
SUBTASK_COEFFICIENT = 0.15

# Imminent-deadline amplification
DEADLINE_BOOST = 1.5
DUE_SOON_HOURS = 24

# Display-ordering bonuses
PIN_BONUS = 1000.0
ACTIVE_TIMER_BONUS = 500.0

# Scores closer than this are treated as equal during ranking
SCORE_EPSILON = 0.001

# Reminders
DEFAULT_INTERVAL_MINUTES = 5
TASKS_COLLECTION = "reminders"
NOTIFICATIONS_COLLECTION = "notifications"

# Completion XP
BASE_XP = 5
PRIORITY_XP_MULTIPLIERS = {
    Priority.LOWEST.value: 1,
    Priority.MEDIUM.value: 2,
    Priority.HIGH.value: 3,
    Priority.URGENT.value: 3,
}
