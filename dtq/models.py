"""
Data models for the hand-off queue.

Field names on disk are camelCase (taskId, claimedBy, ...); the dataclasses
use snake_case and convert at the to_dict/from_dict boundary.
"""

from dataclasses import dataclass, field
from enum import Enum


class Stage(str, Enum):
    """Workflow stages, in pipeline order."""

    CODING = "coding"
    REVIEW = "review"
    QA = "qa"
    MERGE_READY = "merge-ready"


class Action(str, Enum):
    """Actions recorded in an item's history."""

    SUBMIT = "submit"
    CLAIM = "claim"
    APPROVE = "approve"
    REJECT = "reject"


STAGES = [s.value for s in Stage]

# Stages an agent can claim work from
CLAIMABLE_STAGES = [Stage.REVIEW.value, Stage.QA.value]


@dataclass
class HistoryEntry:
    """One accepted operation on a work item. Never modified once appended."""
    action: str
    agent: str
    at: str                                    # UTC timestamp, see lib.history.now()
    note: str = ""                             # Rejection reason

    def to_dict(self) -> dict:
        data = {"action": self.action, "agent": self.agent, "at": self.at}
        if self.note:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            action=data["action"],
            agent=data["agent"],
            at=data["at"],
            note=data.get("note", ""),
        )


@dataclass
class WorkItem:
    """A unit of work moving through coding -> review -> qa -> merge-ready."""
    task_id: str
    stage: str
    branch: str
    submitted_at: str
    updated_at: str
    claimed_by: str = ""                       # Empty when unclaimed
    cycles: int = 0                            # Number of rejections so far
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def is_claimed(self) -> bool:
        return bool(self.claimed_by)

    def to_dict(self) -> dict:
        data = {
            "taskId": self.task_id,
            "stage": self.stage,
            "branch": self.branch,
        }
        if self.claimed_by:
            data["claimedBy"] = self.claimed_by
        data.update({
            "cycles": self.cycles,
            "submittedAt": self.submitted_at,
            "updatedAt": self.updated_at,
            "history": [entry.to_dict() for entry in self.history],
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkItem":
        return cls(
            task_id=data["taskId"],
            stage=data["stage"],
            branch=data["branch"],
            submitted_at=data["submittedAt"],
            updated_at=data["updatedAt"],
            claimed_by=data.get("claimedBy", ""),
            cycles=data.get("cycles", 0),
            history=[HistoryEntry.from_dict(h) for h in data.get("history", [])],
        )
