"""
Error taxonomy for the queue.

Every failure surfaced by the core is a QueueError subclass. The CLI maps
each kind to an exit code and renders it as a single-field error record.
"""

from pathlib import Path


class QueueError(Exception):
    """Base class for all queue failures."""

    def to_dict(self) -> dict:
        return {"error": str(self)}


class ValidationError(QueueError):
    """Malformed or missing input, raised before any transaction opens."""
    pass


class StateError(QueueError):
    """Operation is not allowed from the item's current stage."""

    def __init__(self, task_id: str, stage: str, message: str):
        self.task_id = task_id
        self.stage = stage
        super().__init__(message)


class NotFoundError(QueueError):
    """Task id is not in the store."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"task {task_id} not found in queue")


class NoWorkAvailable(QueueError):
    """Nothing eligible to claim. Expected; the caller may try again later."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"no unclaimed items in stage '{stage}'")


class StorageError(QueueError):
    """I/O, lock or corrupt-content failure. Fatal for the invocation."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message + (f" ({path})" if path else ""))
