"""Claim scheduling: pick the next item an agent should work on."""

import logging

from dtq.lib.errors import NoWorkAvailable
from dtq.models import WorkItem

logger = logging.getLogger(__name__)


def claim_priority(item: WorkItem) -> tuple:
    """Sort key for eligible items; lowest sorts first.

    Revisions (cycles > 0) preempt fresh work, then FIFO by submittedAt,
    then task id so identical timestamps resolve the same way every time.
    """
    return (0 if item.cycles > 0 else 1, item.submitted_at, item.task_id)


def eligible_items(items: dict[str, WorkItem], stage: str) -> list[WorkItem]:
    """Unclaimed items in stage, highest priority first."""
    candidates = [
        item for item in items.values()
        if item.stage == stage and not item.is_claimed
    ]
    return sorted(candidates, key=claim_priority)


def select_next(items: dict[str, WorkItem], stage: str) -> WorkItem:
    """Return the single highest-priority unclaimed item in stage.

    Raises:
        NoWorkAvailable: if nothing in stage is unclaimed
    """
    candidates = eligible_items(items, stage)
    if not candidates:
        raise NoWorkAvailable(stage)

    pick = candidates[0]
    logger.debug(
        f"[CLAIM] {stage}: picked {pick.task_id} (cycles={pick.cycles}) "
        f"from {len(candidates)} candidates"
    )
    return pick
