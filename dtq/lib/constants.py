"""Shared constants for the queue."""

import re

# Durable layout, relative to the invocation root
STORE_DIRNAME = ".dtq"
STORE_FILENAME = "queue.json"
LOCK_FILENAME = "queue.lock"
CONFIG_FILENAME = "config.env"

DEFAULT_AGENT = "unknown"

# Reject results carry an escalation warning at or above this many cycles
DEFAULT_ESCALATION_CYCLES = 3

# Task ids: printable, no whitespace
TASK_ID_PATTERN = re.compile(r'^[^\s\x00-\x1f\x7f]+$')
MAX_TASK_ID_LEN = 128
