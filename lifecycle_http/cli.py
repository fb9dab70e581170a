#!/usr/bin/env python3

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from lifecycle_http.main import run
from lifecycle_http.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifecycle-http", description="Echo/hello HTTP service"
    )
    parser.add_argument("-a", "--address", help="Listen address as host:port (e.g. ':8098')")
    parser.add_argument("-e", "--env", help="Environment name (e.g. development)")
    parser.add_argument("--start-timeout", type=float, help="Start deadline in seconds")
    parser.add_argument(
        "--shutdown-timeout", type=float, help="Graceful shutdown deadline in seconds"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Overlay command line options on the environment-derived settings."""
    overrides = {
        "listen_address": args.address,
        "environment": args.env,
        "start_timeout_seconds": args.start_timeout,
        "shutdown_timeout_seconds": args.shutdown_timeout,
    }
    if args.verbose:
        overrides["debug_logs_enabled"] = True
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def main(argv: Optional[List[str]] = None) -> int:
    """Parse command line arguments and run the service."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    return run(settings)


if __name__ == "__main__":
    sys.exit(main())
