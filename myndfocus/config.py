"""Prioritization configuration for myndfocus.

All scoring weights live in a single overridable ``PrioritizationConfig``.
``load_config()`` applies overrides from the environment (and ``.env``).
"""

import json
import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from myndfocus.models import constants

load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = "MYNDFOCUS_"


class PrioritizationConfig(BaseModel):
    """Weights and thresholds used by the scoring engine."""

    priority_weights: Dict[str, float] = Field(default_factory=lambda: dict(constants.PRIORITY_WEIGHTS))
    interval_weights: Dict[int, float] = Field(default_factory=lambda: dict(constants.INTERVAL_WEIGHTS))
    age_weight: float = constants.AGE_WEIGHT
    deadline_weight: float = constants.DEADLINE_WEIGHT
    subtask_weight: float = constants.SUBTASK_WEIGHT
    reschedule_penalty_weight: float = constants.RESCHEDULE_PENALTY_WEIGHT
    pin_bonus: float = constants.PIN_BONUS
    active_timer_bonus: float = constants.ACTIVE_TIMER_BONUS
    epsilon: float = Field(constants.SCORE_EPSILON, ge=0.0)

    priority_coefficient: float = constants.PRIORITY_COEFFICIENT
    interval_coefficient: float = constants.INTERVAL_COEFFICIENT
    age_coefficient: float = constants.AGE_COEFFICIENT
    deadline_coefficient: float = constants.DEADLINE_COEFFICIENT
    subtask_coefficient: float = constants.SUBTASK_COEFFICIENT

    deadline_boost: float = constants.DEADLINE_BOOST
    due_soon_hours: float = constants.DUE_SOON_HOURS
    default_interval_minutes: int = Field(constants.DEFAULT_INTERVAL_MINUTES, gt=0)

    def priority_weight(self, priority) -> float:
        """Base weight for a priority; unknown priorities get the lowest weight."""
        key = getattr(priority, "value", priority)
        if key in self.priority_weights:
            return self.priority_weights[key]
        return min(self.priority_weights.values()) if self.priority_weights else 0.0

    def interval_weight(self, minutes: Optional[int]) -> float:
        """Weight for a reminder cadence; unmapped or missing cadences get 0."""
        if minutes is None:
            return 0.0
        return self.interval_weights.get(minutes, 0.0)


# Scalar settings that can be overridden from MYNDFOCUS_<NAME>
_SCALAR_FIELDS = (
    "age_weight",
    "deadline_weight",
    "subtask_weight",
    "reschedule_penalty_weight",
    "pin_bonus",
    "active_timer_bonus",
    "epsilon",
    "deadline_boost",
    "due_soon_hours",
    "default_interval_minutes",
)

_TABLE_FIELDS = ("priority_weights", "interval_weights")


def load_config(**overrides) -> PrioritizationConfig:
    """Build the configuration from defaults, environment, then explicit overrides.

    Malformed environment values are logged and ignored.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        PrioritizationConfig
    """
    values = {}

    for name in _SCALAR_FIELDS:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is None or raw.strip() == "":
            continue
        try:
            values[name] = float(raw) if name != "default_interval_minutes" else int(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed {ENV_PREFIX + name.upper()}={raw!r}")

    for name in _TABLE_FIELDS:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if not raw:
            continue
        try:
            table = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed JSON in {ENV_PREFIX + name.upper()}")
            continue
        if isinstance(table, dict):
            values[name] = table
        else:
            logger.warning(f"Ignoring {ENV_PREFIX + name.upper()}: expected a JSON object")

    values.update(overrides)

    try:
        return PrioritizationConfig(**values)
    except ValidationError as e:
        logger.warning(f"Invalid prioritization config, using defaults: {e}")
        return PrioritizationConfig(**overrides)
