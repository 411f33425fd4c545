"""Prometheus exposition of the published snapshot: encoder and HTTP server."""

from connect_exporter.exposition.renderer import (
    TASKS_METRIC,
    SnapshotCollector,
    SnapshotRenderer,
)
from connect_exporter.exposition.server import MetricsServer

__all__ = ["TASKS_METRIC", "SnapshotCollector", "SnapshotRenderer", "MetricsServer"]
