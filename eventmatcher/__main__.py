"""Command-line entry for eventmatcher.

Reads schedule items from a JSON/YAML file and prints expanded instances,
the next occurrence of a template, or an occurrence count as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import NoReturn, Optional

from . import run
from .exceptions import EventMatcherError


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for eventmatcher CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="eventmatcher",
        description="EventMatcher - expand recurring events and availability",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m eventmatcher expand items.json --start 2024-03-01 --end 2024-03-31T23:59:59Z
  python -m eventmatcher next items.yaml --id standup --after 2024-03-08T17:00:00Z
  python -m eventmatcher count items.json --id standup --start 2024-03-01 --end 2024-03-31
  python -m eventmatcher aggregate slots.yaml --start 2024-03-04 --end 2024-03-08 --highlight u1
  python -m eventmatcher validate slots.yaml
        """,
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML or JSON config file (default: EVENTMATCHER_CONFIG env var)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Log level (DEBUG, INFO, WARNING, ERROR); overrides config",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    expand = subparsers.add_parser("expand", help="Expand items into concrete occurrences")
    expand.add_argument("file", help="JSON/YAML file with schedule items")
    expand.add_argument("--start", required=True, help="Inclusive range start (ISO-8601)")
    expand.add_argument("--end", required=True, help="Inclusive range end (ISO-8601)")
    expand.add_argument(
        "--kind",
        choices=["events", "availability"],
        help="Record kind; selects the event or availability model",
    )

    nxt = subparsers.add_parser("next", help="Next occurrence of a recurring item")
    nxt.add_argument("file", help="JSON/YAML file with schedule items")
    nxt.add_argument("--id", required=True, help="ID of the recurring item")
    nxt.add_argument("--after", help="Exclusive lower bound (default: now)")

    count = subparsers.add_parser("count", help="Count occurrences of a recurring item")
    count.add_argument("file", help="JSON/YAML file with schedule items")
    count.add_argument("--id", required=True, help="ID of the recurring item")
    count.add_argument("--start", required=True, help="Inclusive range start (ISO-8601)")
    count.add_argument("--end", required=True, help="Inclusive range end (ISO-8601)")

    aggregate = subparsers.add_parser(
        "aggregate", help="Count free participants per time bucket"
    )
    aggregate.add_argument("file", help="JSON/YAML file with availability records")
    aggregate.add_argument("--start", required=True, help="Inclusive range start (ISO-8601)")
    aggregate.add_argument("--end", required=True, help="Inclusive range end (ISO-8601)")
    aggregate.add_argument(
        "--highlight",
        action="append",
        metavar="USER_ID",
        help="Flag buckets where this user is free (repeatable)",
    )

    validate = subparsers.add_parser(
        "validate", help="Check availability slot shape and overlaps"
    )
    validate.add_argument("file", help="JSON/YAML file with availability records")

    return parser


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the eventmatcher CLI.

    Exit codes: 0 on success, 1 when ``validate`` finds invalid slots,
    2 on invalid input or configuration.
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    try:
        result = run(args)
    except EventMatcherError as exc:
        print(f"eventmatcher: error: {exc}", file=sys.stderr)
        sys.exit(2)

    print(json.dumps(result, indent=2))
    if isinstance(result, dict) and result.get("valid") is False:
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
