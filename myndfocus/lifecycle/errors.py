"""Error taxonomy for task lifecycle operations."""

from typing import Optional


class StoreError(Exception):
    """Failure reported by the document store or reminder collaborator."""

    CONNECTIVITY = "connectivity"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"

    def __init__(self, kind: str, message: str = ""):
        super().__init__(message or kind)
        self.kind = kind
        self.message = message or kind


class LifecycleError(Exception):
    """Base class for errors reported (not raised) by the lifecycle adapter."""

    code = "lifecycle_error"
    recoverable = True

    def __init__(self, task_id: Optional[str], message: str = ""):
        super().__init__(message or self.code)
        self.task_id = task_id
        self.message = message or self.code

    def to_dict(self) -> dict:
        result = {"error_code": self.code, "message": self.message}
        if self.task_id is not None:
            result["task_id"] = self.task_id
        return result


class InvalidTask(LifecycleError):
    """Task is missing its identity; the operation was a no-op."""
    code = "invalid_task"


class AlreadyProcessing(LifecycleError):
    """Another lifecycle operation for the same task is still in flight."""
    code = "already_processing"


class StoreFailure(LifecycleError):
    """The document store rejected the mutation; local state was rolled back."""
    code = "store_failure"

    def __init__(self, task_id: Optional[str], cause: StoreError):
        super().__init__(task_id, f"{cause.kind}: {cause.message}")
        self.cause = cause
        self.kind = cause.kind
