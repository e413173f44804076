"""FastAPI web application for myndfocus."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from myndfocus.api.service import TaskService
from myndfocus.database.database import SessionLocal, init_db
from myndfocus.database.repository import SqlDocumentStore
from myndfocus.engine.scoring import ScoringStrategy
from myndfocus.lifecycle.adapter import LifecycleResult
from myndfocus.lifecycle.errors import AlreadyProcessing, InvalidTask, StoreError, StoreFailure
from myndfocus.models.results import PriorityExplanation
from myndfocus.models.task import Task
from myndfocus.notifications.reminders import StoreReminderScheduler

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="myndfocus API",
    description="Ranks your tasks and tells you which one to focus on now",
    version="0.1.0"
)

_service: Optional[TaskService] = None


async def get_task_service() -> TaskService:
    """Get the process-wide task service (dependency for FastAPI)."""
    global _service
    if _service is None:
        init_db()
        store = SqlDocumentStore(SessionLocal)
        service = TaskService(store, StoreReminderScheduler(store))
        try:
            await service.refresh()
        except StoreError as e:
            raise HTTPException(status_code=503, detail=f"Failed to load tasks: {e.message}")
        _service = service
    return _service


# Response models
class RankedTask(BaseModel):
    """A task with its place in the ranking."""
    rank: int
    score: float
    breakdown: Dict[str, float] = Field(default_factory=dict)
    task: Dict[str, Any]


class RankingResponse(BaseModel):
    """Response for the ranked task list."""
    strategy: ScoringStrategy
    top_id: Optional[str]
    tasks: List[RankedTask]


class RefreshResponse(BaseModel):
    """Response for a reload from the store."""
    loaded_count: int


class LifecycleResponse(BaseModel):
    """Response for complete / reschedule / delete."""
    task: Dict[str, Any]
    xp_awarded: int = 0
    next_reminder_time: Optional[datetime] = None


def _raise_for(result: LifecycleResult) -> None:
    """Translate a failed lifecycle result into an HTTP error."""
    if result.ok:
        return
    error = result.error
    if isinstance(error, InvalidTask):
        raise HTTPException(status_code=400, detail=error.to_dict())
    if isinstance(error, AlreadyProcessing):
        raise HTTPException(status_code=409, detail=error.to_dict())
    if isinstance(error, StoreFailure):
        raise HTTPException(status_code=503, detail=error.to_dict())
    raise HTTPException(status_code=500, detail=error.to_dict() if error else "Unknown failure")


def _lookup(service: TaskService, task_id: str) -> Task:
    task = service.find(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return task


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/tasks/refresh", response_model=RefreshResponse)
async def refresh_tasks(service: TaskService = Depends(get_task_service)):
    """Reload tasks from the document store."""
    try:
        return RefreshResponse(loaded_count=await service.refresh())
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to load tasks: {e.message}")


@app.get("/tasks/ranked", response_model=RankingResponse)
async def ranked_tasks(
    strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL,
    service: TaskService = Depends(get_task_service),
):
    """Active tasks, highest priority first."""
    result = service.ranking(strategy)
    tasks = [
        RankedTask(
            rank=index + 1,
            score=result.scores[task.id].score,
            breakdown=result.scores[task.id].breakdown,
            task=task.to_document(),
        )
        for index, task in enumerate(result.ordered)
    ]
    return RankingResponse(strategy=strategy, top_id=result.top_id, tasks=tasks)


@app.get("/tasks/{task_id}/explain", response_model=PriorityExplanation)
async def explain_task(
    task_id: str,
    strategy: ScoringStrategy = ScoringStrategy.ANALYTICAL,
    service: TaskService = Depends(get_task_service),
):
    """Explain a task's score and rank."""
    explanation = service.explain(task_id, strategy)
    if explanation is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} is not in the active ranking")
    return explanation


@app.post("/tasks/{task_id}/pin")
async def pin_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Pin a task to the top of the display ordering."""
    _lookup(service, task_id)
    service.pin(task_id)
    return {"pinned_task_id": task_id}


@app.post("/tasks/{task_id}/complete", response_model=LifecycleResponse)
async def complete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Complete a task."""
    result = await service.complete(_lookup(service, task_id))
    _raise_for(result)
    return LifecycleResponse(task=result.task.to_document(), xp_awarded=result.xp_awarded)


@app.post("/tasks/{task_id}/reschedule", response_model=LifecycleResponse)
async def reschedule_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Reschedule a task by one reminder interval."""
    result = await service.reschedule(_lookup(service, task_id))
    _raise_for(result)
    return LifecycleResponse(
        task=result.task.to_document(),
        next_reminder_time=result.reminder.next_reminder_time if result.reminder else None,
    )


@app.delete("/tasks/{task_id}", response_model=LifecycleResponse)
async def delete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Delete a task."""
    result = await service.delete(_lookup(service, task_id))
    _raise_for(result)
    return LifecycleResponse(task=result.task.to_document())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
