"""Entry point for watch-copy.

Usage:
    python -m watch_copy <source-directory> <regex-pattern> <destination-directory>
"""

import argparse
import sys

from watch_copy import __app_name__
from watch_copy.config import ConfigError, build_request
from watch_copy.watcher import WatchSetupError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Copy files matching a pattern whenever they are modified.",
    )
    parser.add_argument("source", help="Folder to watch (recursively)")
    parser.add_argument("pattern", help="Regular expression searched for in each changed path")
    parser.add_argument("destination", help="Folder that matching files are copied into")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, echo the request and run until stopped."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        request = build_request(args.source, args.pattern, args.destination)
    except ConfigError as exc:
        parser.error(str(exc))

    print(f"watching {request.source}")
    print(f"matching {request.pattern.pattern}")
    print(f"copying to {request.destination}")

    from watch_copy.service import run, setup_logging

    setup_logging()
    try:
        run(request)
    except WatchSetupError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
