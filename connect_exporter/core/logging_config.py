"""Process-wide logging setup for the exporter.

Call :func:`configure_logging` once at startup (``__main__`` does it before
anything else).  Other modules only ever do::

    import logging
    logger = logging.getLogger(__name__)

Environment fallbacks, read when :func:`configure_logging` runs:
    LOG_LEVEL   DEBUG | INFO | WARNING | ERROR   (default: INFO)
    LOG_FORMAT  text | json                      (default: text)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = ["configure_logging", "JsonFormatter", "CYCLE_ID_CTX", "CycleContextFilter"]

#: Identifier of the poll cycle currently running in this context.  Set by
#: :func:`~connect_exporter.orchestrator.poller.run_cycle`; ``"-"`` elsewhere
#: (startup, request handlers, shutdown).
CYCLE_ID_CTX: ContextVar[str] = ContextVar("cycle_id", default="-")

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_FORMATS = {"text", "json"}

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(cycle_id)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO for a process that polls every few seconds.
_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "aiohttp.access")


class CycleContextFilter(logging.Filter):
    """Copy :data:`CYCLE_ID_CTX` onto every record as ``record.cycle_id``.

    Installed on the handler so the text format can reference
    ``%(cycle_id)s`` and the JSON formatter picks it up as an extra field.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.cycle_id = CYCLE_ID_CTX.get("-")
        return True


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name.  Falls back to ``$LOG_LEVEL``, then INFO.
        fmt: ``"text"`` or ``"json"``.  Falls back to ``$LOG_FORMAT``, then text.
        force: Replace handlers installed by an earlier call (tests, CLI).

    Raises:
        ValueError: If *level* or *fmt* is not recognised.
    """
    resolved_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    resolved_fmt = (fmt or os.environ.get("LOG_FORMAT", "text")).lower()

    if resolved_level not in _VALID_LEVELS:
        raise ValueError(
            f"Unknown LOG_LEVEL {resolved_level!r}. "
            f"Must be one of: {', '.join(sorted(_VALID_LEVELS))}"
        )
    if resolved_fmt not in _VALID_FORMATS:
        raise ValueError(
            f"Unknown LOG_FORMAT {resolved_fmt!r}. "
            f"Must be one of: {', '.join(sorted(_VALID_FORMATS))}"
        )

    root = logging.getLogger()

    if root.handlers and not force:
        root.setLevel(resolved_level)
        return

    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved_level)
    handler.addFilter(CycleContextFilter())
    if resolved_fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT))

    root.setLevel(resolved_level)
    root.addHandler(handler)

    noisy_level = logging.DEBUG if resolved_level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per log record.

    Output shape::

        {
            "ts":      "2026-10-19T12:34:56.789Z",
            "level":   "WARNING",
            "logger":  "connect_exporter.orchestrator.poller",
            "message": "Poll cycle failed: status code 503 from listing connectors",
            "extra":   {"cycle_id": "9c1e04aa"}
        }

    ``exc_info`` and ``stack_info`` keys are added only when present.
    """

    # LogRecord attributes that are not caller-supplied extras.
    _RECORD_ATTRS: frozenset[str] = frozenset(
        vars(logging.LogRecord("", 0, "", 0, "", None, None))
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        record.message = record.getMessage()
        created = datetime.fromtimestamp(record.created, tz=UTC)
        ts = created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}Z"

        payload: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
            "extra": {
                k: v for k, v in record.__dict__.items() if k not in self._RECORD_ATTRS
            },
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, default=str)
