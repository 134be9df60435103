"""Command-line interface to start the ddhouse intake server.

Settings come from ``DDHOUSE_*`` environment variables (and ``.env``); the
flags below only cover the bind address and log verbosity.

Usage
-----
    python -m ddhouse.server.cli --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import argparse
import importlib
from typing import List, Optional

from ..config.models import EnvSettings
from ..observability import setup_logging
from .http import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ddhouse agent intake server")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    parser.add_argument(
        "--host", default="127.0.0.1", help="HTTP bind host (default 127.0.0.1)"
    )
    parser.add_argument("--port", type=int, default=8080, help="HTTP port")
    return parser


def effective_log_level(args: argparse.Namespace, settings: EnvSettings) -> str:
    """Flag beats ``-v`` beats the environment."""
    if args.log_level:
        return args.log_level
    if args.verbose > 0:
        return "DEBUG"
    return settings.log_level.upper()


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint for running the intake server under uvicorn."""
    args = build_parser().parse_args(argv)
    settings = EnvSettings()
    level = effective_log_level(args, settings)
    # Apply early so subsequent imports use configured level
    setup_logging(level)

    uvicorn = importlib.import_module("uvicorn")
    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=level.lower())


if __name__ == "__main__":
    main()
