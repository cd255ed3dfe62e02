"""
dtq approve/reject - Reviewer decisions on a claimed item.
"""

from dtq.commands.output import print_result
from dtq.lib.config import QueueConfig
from dtq.workflow.engine import open_queue


def cmd_approve(args, config: QueueConfig) -> int:
    """Advance the item to the next stage."""
    result = open_queue(config).approve(args.id, config.agent)
    print_result(result.to_dict())
    return 0


def cmd_reject(args, config: QueueConfig) -> int:
    """Send the item back to coding with a reason."""
    result = open_queue(config).reject(args.id, config.agent, args.reason)
    print_result(result.to_dict())
    return 0
