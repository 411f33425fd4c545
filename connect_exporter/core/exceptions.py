"""Connect exporter exception taxonomy.

Every custom exception inherits from :class:`ExporterError`.  Exceptions are
organised by architectural layer so callers can catch at the right granularity:

    Layer hierarchy
    ---------------
    ExporterError
    ├── ConfigError
    ├── OrchestratorError
    └── PollError
        ├── ListError
        ├── StatusError
        └── EmptyTasksError

Every :class:`PollError` is *cycle-fatal*: it aborts the current poll cycle,
nothing from that cycle is published, and the error is recorded in the
:class:`~connect_exporter.orchestrator.store.MetricsStore` until a later
cycle succeeds.

Usage:

    from connect_exporter.core.exceptions import StatusError

    raise StatusError("orders-sink", status_code=404)
"""

from __future__ import annotations

__all__ = [
    "ExporterError",
    "ConfigError",
    "OrchestratorError",
    # Poll cycle
    "PollError",
    "ListError",
    "StatusError",
    "EmptyTasksError",
]

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class ExporterError(Exception):
    """Root exception for all exporter errors."""


# ---------------------------------------------------------------------------
# Config layer
# ---------------------------------------------------------------------------


class ConfigError(ExporterError):
    """Raised when the process configuration is invalid or incomplete.

    Examples:
        - ``CONNECT_HOST`` is not set and no client was supplied.
    """


# ---------------------------------------------------------------------------
# Orchestrator layer
# ---------------------------------------------------------------------------


class OrchestratorError(ExporterError):
    """Raised for misuse of the polling lifecycle (e.g. starting twice)."""


# ---------------------------------------------------------------------------
# Poll cycle
# ---------------------------------------------------------------------------


class PollError(ExporterError):
    """Base class for errors that abort a poll cycle."""


def _describe(call: str, status_code: int | None, reason: str | None) -> str:
    if status_code is not None:
        return f"status code {status_code} from {call}"
    if reason:
        return f"{call}: {reason}"
    return f"{call} failed"


class ListError(PollError):
    """Raised when listing connectors fails.

    Args:
        status_code: HTTP status of a non-2xx answer, or ``None`` when the
            request never produced a usable response (transport failure or
            undecodable body).
        reason: Short description of a transport or decoding failure.
    """

    def __init__(self, status_code: int | None = None, reason: str | None = None) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(_describe("listing connectors", status_code, reason))


class StatusError(PollError):
    """Raised when fetching the status of one connector fails.

    Args:
        connector: Name of the connector whose status call failed.
        status_code: HTTP status of a non-2xx answer, or ``None`` for a
            transport or decoding failure.
        reason: Short description of a transport or decoding failure.
    """

    def __init__(
        self,
        connector: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.connector = connector
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            _describe(f"getting status for connector {connector}", status_code, reason)
        )


class EmptyTasksError(PollError):
    """Raised when a listed connector reports zero tasks.

    A connector with no tasks cannot be told apart from a broken deployment,
    so it fails the cycle instead of reporting zero counts.

    Args:
        connector: Name of the connector without tasks.
    """

    def __init__(self, connector: str) -> None:
        self.connector = connector
        super().__init__(f"no tasks for connector {connector}")
