"""
dtq claim - Take the next item waiting in review or qa.
"""

from dtq.commands.output import print_result
from dtq.lib.config import QueueConfig
from dtq.workflow.engine import open_queue


def cmd_claim(args, config: QueueConfig) -> int:
    result = open_queue(config).claim(args.stage, config.agent)
    print_result(result.to_dict())
    return 0
