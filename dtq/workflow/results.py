"""
Typed results for queue operations.

Each operation returns its own result shape; to_dict() produces the record
the CLI prints.
"""

from dataclasses import dataclass, field

from dtq.models import WorkItem


@dataclass
class SubmitResult:
    task_id: str
    stage: str
    message: str = "submitted for review"

    def to_dict(self) -> dict:
        return {"taskId": self.task_id, "stage": self.stage, "message": self.message}


@dataclass
class ClaimResult:
    task_id: str
    stage: str
    branch: str
    claimed_by: str
    cycles: int

    def to_dict(self) -> dict:
        return {
            "taskId": self.task_id,
            "stage": self.stage,
            "branch": self.branch,
            "claimedBy": self.claimed_by,
            "cycles": self.cycles,
        }


@dataclass
class ApproveResult:
    task_id: str
    stage: str

    @property
    def message(self) -> str:
        return f"advanced to {self.stage}"

    def to_dict(self) -> dict:
        return {"taskId": self.task_id, "stage": self.stage, "message": self.message}


@dataclass
class RejectResult:
    task_id: str
    stage: str
    cycles: int
    message: str = "sent back for revision"
    warning: str | None = None                 # Escalation advisory, never persisted

    @property
    def escalated(self) -> bool:
        return self.warning is not None

    def to_dict(self) -> dict:
        data = {
            "taskId": self.task_id,
            "stage": self.stage,
            "cycles": self.cycles,
            "message": self.message,
        }
        if self.warning:
            data["warning"] = self.warning
        return data


@dataclass
class ItemStatus:
    """Single item with its full history."""
    item: WorkItem

    def to_dict(self) -> dict:
        return self.item.to_dict()


@dataclass
class QueueStatus:
    """Whole-queue view: items by submission time plus per-stage counts."""
    items: list[WorkItem] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "counts": dict(self.counts),
        }
