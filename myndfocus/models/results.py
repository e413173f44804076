"""Result models returned by the scoring engine and the task lifecycle."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from myndfocus.models.task import Task


class ScoreResult(BaseModel):
    """Score of a single task plus its per-component contributions."""
    score: float = Field(..., description="Ranking score (analytical scores lie in [0, 1])")
    breakdown: Dict[str, float] = Field(default_factory=dict, description="Diagnostics only, never persisted")


class RankingResult(BaseModel):
    """Outcome of a ranking pass."""
    ordered: List[Task] = Field(default_factory=list, description="Active tasks, highest score first")
    top: Optional[Task] = Field(None, description="Focus task (first of ordered)")
    scores: Dict[str, ScoreResult] = Field(default_factory=dict, description="Score per task id")

    @property
    def top_id(self) -> Optional[str]:
        return self.top.id if self.top else None


class ReminderHandle(BaseModel):
    """Reminder scheduled by the notification collaborator."""
    notification_id: str
    next_reminder_time: datetime


class PriorityExplanation(BaseModel):
    """Why a task holds its place in a ranking."""
    task_id: str
    task_text: str
    priority: str
    interval_weight: float
    score: float
    breakdown: Dict[str, float]
    rank: int = Field(..., description="1-based position in the ordering")
    total_tasks: int
