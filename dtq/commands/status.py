"""
dtq status - Show the queue, or one item with its history.
"""

from dtq.commands.output import print_result
from dtq.lib.config import QueueConfig
from dtq.lib.history import format_history
from dtq.workflow.engine import open_queue


def cmd_status(args, config: QueueConfig) -> int:
    task_id = getattr(args, 'id', None)
    result = open_queue(config).status(task_id)

    if task_id and getattr(args, 'log', False):
        print(format_history(result.item.history))
        return 0

    print_result(result.to_dict())
    return 0
