"""Work item stage machine using the transitions library.

Stages and the triggers that move between them are declared as data below;
each trigger becomes a method on WorkItemFSM. Triggers that are not valid from
the current stage raise StateError instead of silently doing nothing.

Usage:
    from dtq.workflow.fsm import WorkItemFSM

    fsm = WorkItemFSM(item)
    fsm.fire("approve")  # review -> qa, item.stage updated
"""

import logging
from typing import Callable

from transitions import Machine, MachineError

from dtq.lib.errors import StateError
from dtq.models import STAGES, WorkItem

logger = logging.getLogger(__name__)


# Transitions defined as (trigger, source, dest)
# merge-ready has no outgoing transitions: it is terminal.
TRANSITIONS = [
    # Hand work to reviewers (first submission or resubmission after rejection)
    {"trigger": "submit", "source": "coding", "dest": "review"},

    # Advance one step on approval
    {"trigger": "approve", "source": "review", "dest": "qa"},
    {"trigger": "approve", "source": "qa", "dest": "merge-ready"},

    # Revision loop
    {"trigger": "reject", "source": "review", "dest": "coding"},
    {"trigger": "reject", "source": "qa", "dest": "coding"},
]

# Error messages for triggers fired from a stage that doesn't allow them
_INVALID_MESSAGES = {
    "submit": "task {task_id} is in stage '{stage}', can only submit from 'coding'",
    "approve": "cannot approve task {task_id} in stage '{stage}'",
    "reject": "cannot reject task {task_id} in stage '{stage}'",
}


class WorkItemFSM:
    """State machine bound to a single WorkItem.

    The machine's state mirrors item.stage; after every transition the new
    stage is written back to the item.
    """

    def __init__(self, item: WorkItem, on_transition: Callable[[str, str, str], None] | None = None):
        """
        Args:
            item: Work item whose stage drives the machine
            on_transition: Optional callback(from_stage, to_stage, trigger) called after transitions
        """
        self.item = item
        self.on_transition = on_transition

        if item.stage not in STAGES:
            raise StateError(item.task_id, item.stage, f"task {item.task_id} has unknown stage '{item.stage}'")

        self.machine = Machine(
            model=self,
            states=STAGES,
            transitions=TRANSITIONS,
            initial=item.stage,
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        """Write the new stage back to the item and log the transition."""
        from_stage = event.transition.source
        to_stage = event.transition.dest
        trigger = event.event.name

        self.item.stage = to_stage
        logger.info(f"[FSM] {self.item.task_id}: {from_stage} -> {to_stage} ({trigger})")

        if self.on_transition:
            self.on_transition(from_stage, to_stage, trigger)

    def fire(self, trigger: str) -> str:
        """Run a trigger and return the new stage.

        Raises:
            StateError: if the trigger is not allowed from the current stage
        """
        current = self.state
        try:
            self.trigger(trigger)
        except MachineError:
            template = _INVALID_MESSAGES.get(trigger, "cannot {trigger} task {task_id} in stage '{stage}'")
            raise StateError(
                self.item.task_id,
                current,
                template.format(trigger=trigger, task_id=self.item.task_id, stage=current),
            ) from None
        return self.state

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current stage."""
        return trigger in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[str]:
        """Get list of triggers available in current stage."""
        return self.machine.get_triggers(self.state)
