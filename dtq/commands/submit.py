"""
dtq submit - Hand work to reviewers.
"""

from dtq.commands.output import print_result
from dtq.lib.config import QueueConfig
from dtq.workflow.engine import open_queue


def cmd_submit(args, config: QueueConfig) -> int:
    """Submit a new task, or resubmit one sent back to coding."""
    result = open_queue(config).submit(args.id, args.branch, config.agent)
    print_result(result.to_dict())
    return 0
