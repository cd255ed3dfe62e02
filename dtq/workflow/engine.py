"""Queue engine: the five public operations.

Each operation runs as one store transaction:
1. Acquire the store lock and load all items
2. Validate and apply the stage transition (or pick an item to claim)
3. Append a history entry stamped with the transaction's single timestamp
4. Persist atomically and release the lock

Any exception in step 2 or 3 aborts the transaction with nothing written.
"""

import logging
from typing import Callable

from dtq.lib import history
from dtq.lib.config import QueueConfig
from dtq.lib.constants import DEFAULT_ESCALATION_CYCLES
from dtq.lib.errors import NotFoundError, StateError
from dtq.lib.validate import (
    validate_branch,
    validate_claim_stage,
    validate_reason,
    validate_task_id,
)
from dtq.models import STAGES, Action, Stage, WorkItem
from dtq.store import QueueStore
from dtq.workflow.fsm import WorkItemFSM
from dtq.workflow.results import (
    ApproveResult,
    ClaimResult,
    ItemStatus,
    QueueStatus,
    RejectResult,
    SubmitResult,
)
from dtq.workflow.scheduler import select_next

logger = logging.getLogger(__name__)


def _get_item(items: dict[str, WorkItem], task_id: str) -> WorkItem:
    item = items.get(task_id)
    if item is None:
        raise NotFoundError(task_id)
    return item


class QueueEngine:
    """Workflow operations over a QueueStore."""

    def __init__(
        self,
        store: QueueStore,
        clock: Callable[[], str] = history.now,
        escalation_cycles: int = DEFAULT_ESCALATION_CYCLES,
    ):
        self.store = store
        self.clock = clock
        self.escalation_cycles = escalation_cycles

    def submit(self, task_id: str, branch: str, agent: str) -> SubmitResult:
        """Create a new item in review, or resubmit one that is back in coding."""
        validate_task_id(task_id)
        validate_branch(branch)

        def txn(items):
            now = self.clock()
            item = items.get(task_id)
            if item is None:
                # New items start in coding so the first submit runs through the FSM
                item = WorkItem(
                    task_id=task_id,
                    stage=Stage.CODING.value,
                    branch=branch,
                    submitted_at=now,
                    updated_at=now,
                )
                WorkItemFSM(item).fire("submit")
                items[task_id] = item
                logger.info(f"[QUEUE] {task_id}: created on {branch} by {agent}")
            else:
                WorkItemFSM(item).fire("submit")
                item.branch = branch
                item.claimed_by = ""
                logger.info(f"[QUEUE] {task_id}: resubmitted on {branch} by {agent} (cycle {item.cycles})")

            history.record(item, Action.SUBMIT, agent, now)
            return SubmitResult(task_id=item.task_id, stage=item.stage)

        return self.store.execute(txn)

    def claim(self, stage: str, agent: str) -> ClaimResult:
        """Assign the highest-priority unclaimed item in stage to agent.

        Raises:
            NoWorkAvailable: nothing eligible; retry later
        """
        validate_claim_stage(stage)

        def txn(items):
            now = self.clock()
            item = select_next(items, stage)
            item.claimed_by = agent
            history.record(item, Action.CLAIM, agent, now)
            logger.info(f"[QUEUE] {item.task_id}: claimed in {stage} by {agent}")
            return ClaimResult(
                task_id=item.task_id,
                stage=item.stage,
                branch=item.branch,
                claimed_by=item.claimed_by,
                cycles=item.cycles,
            )

        return self.store.execute(txn)

    def approve(self, task_id: str, agent: str) -> ApproveResult:
        """Advance a claimed item one stage: review -> qa -> merge-ready."""
        validate_task_id(task_id)

        def txn(items):
            now = self.clock()
            item = _get_item(items, task_id)
            fsm = WorkItemFSM(item)
            # Wrong stage is reported by fire(); only review/qa need the claim check
            if fsm.can("approve") and not item.is_claimed:
                raise StateError(
                    task_id, item.stage,
                    f"task {task_id} is not claimed, claim it first",
                )
            fsm.fire("approve")
            item.claimed_by = ""
            history.record(item, Action.APPROVE, agent, now)
            return ApproveResult(task_id=item.task_id, stage=item.stage)

        return self.store.execute(txn)

    def reject(self, task_id: str, agent: str, reason: str) -> RejectResult:
        """Send an item in review or qa back to coding and count the cycle."""
        validate_task_id(task_id)
        validate_reason(reason)

        def txn(items):
            now = self.clock()
            item = _get_item(items, task_id)
            WorkItemFSM(item).fire("reject")
            item.claimed_by = ""
            item.cycles += 1
            history.record(item, Action.REJECT, agent, now, note=reason)

            warning = None
            if item.cycles >= self.escalation_cycles:
                warning = f"escalation recommended - {item.cycles} review cycles"
                logger.warning(f"[QUEUE] {task_id}: {warning}")

            return RejectResult(
                task_id=item.task_id,
                stage=item.stage,
                cycles=item.cycles,
                warning=warning,
            )

        return self.store.execute(txn)

    def status(self, task_id: str | None = None) -> ItemStatus | QueueStatus:
        """Single item with history, or every item plus per-stage counts."""
        if task_id:
            validate_task_id(task_id)

            def txn(items):
                return ItemStatus(item=_get_item(items, task_id))

            return self.store.execute(txn, readonly=True)

        def txn(items):
            counts = {stage: 0 for stage in STAGES}
            for item in items.values():
                counts[item.stage] += 1
            ordered = sorted(items.values(), key=lambda i: (i.submitted_at, i.task_id))
            return QueueStatus(items=ordered, counts=counts)

        return self.store.execute(txn, readonly=True)


def open_queue(config: QueueConfig, lock=None) -> QueueEngine:
    """Build an engine over the store described by config."""
    store = QueueStore(config.store_path, lock=lock)
    return QueueEngine(store, escalation_cycles=config.escalation_cycles)
