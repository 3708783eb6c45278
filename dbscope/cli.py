#!/usr/bin/env python3
"""dbscope - inspect the SQL databases of a running process."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from .shared.core.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbscope",
        description="Browse, query and edit the databases of an inspected process.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Local SQLite files to serve through the inspection protocol",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use the built-in demo process instead of local files",
    )
    parser.add_argument(
        "--demo-rows",
        type=int,
        default=120,
        help="Rows in the demo users table (default: 120)",
    )
    parser.add_argument(
        "--mock-delay",
        type=float,
        default=0.0,
        help="Seconds the demo process waits before each response",
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory for favourites and logs (default: $DBSCOPE_CONFIG_DIR or ~/.dbscope)",
    )
    parser.add_argument("--debug", action="store_true", help="Write debug logs")
    return parser


def resolve_config_dir(value: str | None) -> Path:
    if value:
        return Path(value).expanduser()
    return Path(os.environ.get("DBSCOPE_CONFIG_DIR", Path.home() / ".dbscope"))


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.mock and not args.files:
        parser.print_usage(sys.stderr)
        print("dbscope: error: pass SQLite files or --mock", file=sys.stderr)
        return 2

    config_dir = resolve_config_dir(args.config_dir)
    configure_logging(config_dir / "dbscope.log", debug=args.debug)

    from .domains.inspect.store.favorites import FAVORITES_KEY, FavoritesStore
    from .domains.inspect.ui.app import InspectorApp
    from .mocks import create_demo_transport, create_file_transport

    if args.mock:
        transport = create_demo_transport(demo_rows=args.demo_rows, delay=args.mock_delay)
    else:
        missing = [path for path in args.files if not Path(path).exists()]
        if missing:
            print(f"dbscope: error: no such file: {', '.join(missing)}", file=sys.stderr)
            return 2
        transport = create_file_transport(args.files)

    favorites = FavoritesStore(config_dir / f"{FAVORITES_KEY}.json")
    InspectorApp(transport, favorites_store=favorites).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
