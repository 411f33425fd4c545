"""Exporter process entry-point.

Usage:
    python -m connect_exporter [--once] [--env-file PATH]
                               [--log-level LEVEL] [--log-format FORMAT]

Default behaviour is continuous: poll Kafka Connect every
``CONNECT_POLL_INTERVAL`` seconds and serve ``/metrics`` until ``SIGTERM`` /
``SIGINT``.  ``--once`` polls a single time, prints the exposition to stdout
and exits non-zero if the poll failed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from connect_exporter.core import configure_logging
from connect_exporter.core.exceptions import ConfigError, PollError
from connect_exporter.core.settings import Settings


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="connect-exporter",
        description="Prometheus exporter for Kafka Connect task states.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Poll once, print the metrics to stdout and exit.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        metavar="PATH",
        help="Read settings from this env file instead of ./.env.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Override LOG_LEVEL (DEBUG|INFO|WARNING|ERROR).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        metavar="FORMAT",
        help="Override LOG_FORMAT (text|json).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entry-point registered in ``pyproject.toml``."""
    args = _parse_args(argv)

    try:
        settings = Settings(_env_file=args.env_file) if args.env_file else Settings()
    except ValidationError as exc:
        print(f"connect-exporter: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    try:
        configure_logging(
            level=args.log_level or settings.log_level,
            fmt=args.log_format or settings.log_format,
        )
    except ValueError as exc:
        print(f"connect-exporter: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    logger = logging.getLogger(__name__)

    # Deferred so logging is configured before these modules create loggers.
    from connect_exporter.service import run_exporter, run_single_poll  # noqa: PLC0415

    try:
        if args.once:
            body = asyncio.run(run_single_poll(settings))
            sys.stdout.write(body.decode("utf-8"))
        else:
            asyncio.run(run_exporter(settings))
    except ConfigError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)
    except PollError as exc:
        logger.error("Poll failed: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted — exiting.")


if __name__ == "__main__":
    main()
