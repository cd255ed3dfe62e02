"""
JSON output helpers shared by the dtq commands.

Results go to stdout, errors to stderr, so callers can pipe stdout straight
into a JSON parser.
"""

import json
import sys


def print_result(data: dict) -> None:
    print(json.dumps(data, indent=2))


def print_error(data: dict) -> None:
    print(json.dumps(data), file=sys.stderr)
