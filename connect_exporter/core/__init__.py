"""Core domain models, settings, logging configuration, and exceptions."""

from connect_exporter.core.exceptions import (
    ConfigError,
    EmptyTasksError,
    ExporterError,
    ListError,
    OrchestratorError,
    PollError,
    StatusError,
)
from connect_exporter.core.logging_config import JsonFormatter, configure_logging
from connect_exporter.core.models import (
    ConnectorState,
    ConnectorStatus,
    Snapshot,
    TaskKey,
    TaskState,
)
from connect_exporter.core.settings import Settings

__all__ = [
    # Logging
    "configure_logging",
    "JsonFormatter",
    # Domain models
    "ConnectorState",
    "ConnectorStatus",
    "Snapshot",
    "TaskKey",
    "TaskState",
    # Settings
    "Settings",
    # Exceptions
    "ExporterError",
    "ConfigError",
    "OrchestratorError",
    "PollError",
    "ListError",
    "StatusError",
    "EmptyTasksError",
]
