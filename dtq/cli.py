#!/usr/bin/env python3
"""dtq CLI entrypoint."""

import argparse
import logging
import sys

from dtq.commands import approve as cmd_approve_module
from dtq.commands import claim as cmd_claim_module
from dtq.commands import status as cmd_status_module
from dtq.commands import submit as cmd_submit_module
from dtq.commands.output import print_error
from dtq.lib.config import load_queue_config
from dtq.lib.errors import (
    NoWorkAvailable,
    NotFoundError,
    QueueError,
    StateError,
    StorageError,
    ValidationError,
)

# Exit codes by error kind; argparse usage errors exit 2 on their own
EXIT_CODES = {
    StateError: 1,
    NotFoundError: 1,
    ValidationError: 2,
    NoWorkAvailable: 3,
    StorageError: 4,
}

EPILOG = """\
environment:
  DTQ_AGENT              your agent name (default: "unknown")
  DTQ_ROOT               directory holding .dtq/ (default: current directory)
  DTQ_ESCALATION_CYCLES  reject cycles before an escalation warning (default: 3)
"""


def exit_code_for(error: QueueError) -> int:
    for kind, code in EXIT_CODES.items():
        if isinstance(error, kind):
            return code
    return 1


def cmd_submit(args, config):
    return cmd_submit_module.cmd_submit(args, config)


def cmd_claim(args, config):
    return cmd_claim_module.cmd_claim(args, config)


def cmd_approve(args, config):
    return cmd_approve_module.cmd_approve(args, config)


def cmd_reject(args, config):
    return cmd_approve_module.cmd_reject(args, config)


def cmd_status(args, config):
    return cmd_status_module.cmd_status(args, config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dtq',
        description='Hand-off queue for coding, review and qa agents',
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--root', help='Directory holding .dtq/ (default: $DTQ_ROOT or cwd)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log store and transition details to stderr')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # dtq submit
    p_submit = subparsers.add_parser('submit', help='Submit work for review')
    p_submit.add_argument('id', help='Task ID')
    p_submit.add_argument('--branch', '-b', required=True, help='Branch holding the work')
    p_submit.set_defaults(func=cmd_submit)

    # dtq claim
    p_claim = subparsers.add_parser('claim', help='Claim next item (review|qa)')
    p_claim.add_argument('stage', help='Stage to claim from: review or qa')
    p_claim.set_defaults(func=cmd_claim)

    # dtq approve
    p_approve = subparsers.add_parser('approve', help='Approve and advance to next stage')
    p_approve.add_argument('id', help='Task ID')
    p_approve.set_defaults(func=cmd_approve)

    # dtq reject
    p_reject = subparsers.add_parser('reject', help='Reject and send back for revision')
    p_reject.add_argument('id', help='Task ID')
    p_reject.add_argument('--reason', '-r', required=True, help='What needs to change')
    p_reject.set_defaults(func=cmd_reject)

    # dtq status
    p_status = subparsers.add_parser('status', help='Show queue (or single item detail)')
    p_status.add_argument('id', nargs='?', help='Task ID (shows whole queue if omitted)')
    p_status.add_argument('--log', action='store_true', help='Print the item history as text')
    p_status.set_defaults(func=cmd_status)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_queue_config(args.root)
        return args.func(args, config)
    except QueueError as e:
        print_error(e.to_dict())
        return exit_code_for(e)


if __name__ == '__main__':
    sys.exit(main())
