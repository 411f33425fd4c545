"""Domain models for Kafka Connect task state and the published snapshot.

:class:`TaskState` / :class:`ConnectorStatus` mirror the payload returned by
the Connect REST API at ``GET /connectors/{name}/status``::

    {
        "name": "orders-sink",
        "connector": {"state": "RUNNING", "worker_id": "10.0.0.5:8083"},
        "tasks": [
            {"id": 0, "state": "RUNNING", "worker_id": "10.0.0.5:8083"},
            {"id": 1, "state": "FAILED", "worker_id": "10.0.0.6:8083",
             "trace": "org.apache.kafka.connect.errors.ConnectException: ..."}
        ]
    }

:class:`Snapshot` is what the poller publishes: an immutable count of tasks
per ``(connector, state, worker)`` triple for one successful poll cycle.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "ConnectorState",
    "TaskState",
    "ConnectorStatus",
    "TaskKey",
    "Snapshot",
]


# ---------------------------------------------------------------------------
# Upstream payloads
# ---------------------------------------------------------------------------


class ConnectorState(BaseModel):
    """State of the connector instance itself (not its tasks)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    state: str
    worker_id: str


class TaskState(BaseModel):
    """One task of a connector: its status label and the worker running it.

    Attributes:
        id: Task index within the connector.
        state: Free-form status label (``RUNNING``, ``FAILED``, ``PAUSED``, ...).
        worker_id: ``host:port`` of the Connect worker executing the task.
        trace: Stack trace reported by Connect for failed tasks, if any.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = 0
    state: str
    worker_id: str
    trace: str | None = None


class ConnectorStatus(BaseModel):
    """Full status document for one connector."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    connector: ConnectorState
    tasks: list[TaskState] = Field(default_factory=list)
    type: str | None = None


# ---------------------------------------------------------------------------
# Published snapshot
# ---------------------------------------------------------------------------


class TaskKey(NamedTuple):
    """Label triple a task count is keyed by."""

    connector: str
    state: str
    worker: str


@dataclass(frozen=True)
class Snapshot:
    """Immutable task counts for one poll cycle.

    ``counts`` is exposed as a read-only mapping; the dict handed to the
    constructor is copied, so later changes to it do not leak in.
    """

    counts: Mapping[TaskKey, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))

    def __len__(self) -> int:
        return len(self.counts)

    def __iter__(self) -> Iterator[TaskKey]:
        return iter(self.counts)

    def get(self, connector: str, state: str, worker: str) -> int:
        """Return the count for one label triple, ``0`` if absent."""
        return self.counts.get(TaskKey(connector, state, worker), 0)

    @property
    def connectors(self) -> frozenset[str]:
        """Names of every connector that contributed to this snapshot."""
        return frozenset(key.connector for key in self.counts)
