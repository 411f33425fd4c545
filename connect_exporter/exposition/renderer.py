"""Prometheus text encoding of a :class:`Snapshot`.

A snapshot is exported as one gauge family::

    # HELP kafka_connect_tasks deployed tasks
    # TYPE kafka_connect_tasks gauge
    kafka_connect_tasks{connector="conn-a",state="RUNNING",worker="w1"} 2.0

The encoder is handed the snapshot explicitly instead of pulling it from the
store, so the caller decides how long its read of the store lasts.
"""

from __future__ import annotations

from collections.abc import Iterator

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.process_collector import ProcessCollector
from prometheus_client.registry import Collector

from connect_exporter.core.models import Snapshot

__all__ = ["TASKS_METRIC", "SnapshotCollector", "SnapshotRenderer"]

TASKS_METRIC = "kafka_connect_tasks"
_TASKS_HELP = "deployed tasks"
_LABELS = ["connector", "state", "worker"]


def _parse_content_type(raw: str) -> tuple[str, str]:
    """Split a Content-Type string into (media-type, charset)."""
    parts = [p.strip() for p in raw.split(";")]
    charset = "utf-8"
    non_charset: list[str] = []
    for part in parts:
        if part.lower().startswith("charset="):
            charset = part.split("=", 1)[1].strip()
        else:
            non_charset.append(part)
    return "; ".join(non_charset), charset


_CONTENT_TYPE, _CHARSET = _parse_content_type(CONTENT_TYPE_LATEST)


class SnapshotCollector(Collector):
    """Collector yielding the task gauge for one fixed snapshot.

    ``None`` (no successful cycle yet) yields the family without samples.
    """

    def __init__(self, snapshot: Snapshot | None) -> None:
        self._snapshot = snapshot

    def collect(self) -> Iterator[Metric]:
        family = GaugeMetricFamily(TASKS_METRIC, _TASKS_HELP, labels=_LABELS)
        if self._snapshot is not None:
            for key in sorted(self._snapshot):
                family.add_metric(list(key), self._snapshot.counts[key])
        yield family


class SnapshotRenderer:
    """Encode snapshots in the Prometheus text exposition format.

    Args:
        process_metrics: Append the standard ``process_*`` metrics of the
            exporter itself (only populated on Linux).
    """

    def __init__(self, *, process_metrics: bool = True) -> None:
        self._process_metrics = process_metrics

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPE

    @property
    def charset(self) -> str:
        return _CHARSET

    def render(self, snapshot: Snapshot | None) -> bytes:
        registry = CollectorRegistry(auto_describe=False)
        registry.register(SnapshotCollector(snapshot))
        if self._process_metrics:
            ProcessCollector(registry=registry)
        return generate_latest(registry)
