"""Polling, snapshot building, and the consistent metrics store.

Public API
----------
* :class:`~connect_exporter.orchestrator.poller.Poller` — background refresh
  loop with a cooperative ``stop()`` handshake.
* :func:`~connect_exporter.orchestrator.poller.run_cycle` — one poll cycle
  published into a store; used by the loop and by ``--once`` mode.
* :func:`~connect_exporter.orchestrator.builder.build_snapshot` — pure
  transform from task listings to a snapshot.
* :class:`~connect_exporter.orchestrator.store.MetricsStore` — many-reader /
  one-writer holder of the latest snapshot and error.
* :class:`~connect_exporter.orchestrator.clock.SystemClock` /
  :class:`~connect_exporter.orchestrator.clock.ManualClock` — tick sources.
"""

from connect_exporter.orchestrator.builder import build_snapshot
from connect_exporter.orchestrator.clock import Clock, ManualClock, SystemClock
from connect_exporter.orchestrator.poller import Poller, collect_snapshot, run_cycle
from connect_exporter.orchestrator.store import MetricsStore, ReadWriteLock, StoreState

__all__ = [
    # Snapshot builder
    "build_snapshot",
    # Clock
    "Clock",
    "ManualClock",
    "SystemClock",
    # Poller
    "Poller",
    "collect_snapshot",
    "run_cycle",
    # Store
    "MetricsStore",
    "ReadWriteLock",
    "StoreState",
]
