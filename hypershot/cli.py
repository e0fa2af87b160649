from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from hypershot.config import settings
from hypershot.logging_setup import setup_logging
from hypershot.services.snapshotter import Snapshotter
from hypershot.utils import is_valid_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hypershot",
        description="Save a web page and the stylesheets, scripts and images it references.",
    )
    parser.add_argument("url", help="page to snapshot (http or https)")
    parser.add_argument("path", help="directory the snapshot is written to")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every pipeline step")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.resource_timeout,
        help="seconds allowed per resource (default: %(default)s)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else settings.log_level)

    if not is_valid_url(args.url):
        print(f'Invalid "url" parameter: {args.url}', file=sys.stderr)
        return 1

    root = Path(args.path)
    root.mkdir(parents=True, exist_ok=True)

    snapshotter = Snapshotter(settings.model_copy(update={"resource_timeout": args.timeout}))
    print(f"[hypershot] Fetching {args.url}")
    result = asyncio.run(snapshotter.snapshot(args.url, root))

    failed = len(result.failed_resources)
    if result.complete:
        print(f"[hypershot] Snapshot ready at {result.index_path} ({failed} resources failed)")
        return 0

    print(f"[hypershot] Snapshot incomplete at {result.index_path}: {result.error}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
