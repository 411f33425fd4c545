"""Background polling of the Kafka Connect API.

One :class:`Poller` owns one ``asyncio`` task.  The task waits for the next
clock tick (or for :meth:`Poller.stop`, whichever comes first) and then runs
a single cycle:

1. :meth:`~connect_exporter.upstream.base.ConnectClient.list_connectors`.
2. :meth:`~connect_exporter.upstream.base.ConnectClient.get_task_states` for
   each connector, in listing order.
3. :func:`~connect_exporter.orchestrator.builder.build_snapshot`.
4. :meth:`~connect_exporter.orchestrator.store.MetricsStore.write`.

The first failure aborts the cycle: the error goes into the store, the
previous snapshot stays visible, and the loop waits for the next tick.  There
is no faster retry and no backoff; the poll interval is the retry mechanism,
so an unavailable Connect cluster shows up as a sustained error state.

Stopping is cooperative.  :meth:`Poller.stop` sets an event the loop checks
at its wait point and then waits for the task to finish, so an in-flight
Connect call is allowed to complete and no write happens once ``stop()``
has returned.

Typical usage::

    store = MetricsStore()
    poller = Poller(store)
    poller.start(client, SystemClock(), interval=10.0)
    ...
    await poller.stop()
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

from connect_exporter.core.exceptions import OrchestratorError, PollError
from connect_exporter.core.logging_config import CYCLE_ID_CTX
from connect_exporter.core.models import Snapshot, TaskState
from connect_exporter.orchestrator.builder import build_snapshot
from connect_exporter.orchestrator.clock import Clock
from connect_exporter.orchestrator.store import MetricsStore
from connect_exporter.upstream.base import ConnectClient

__all__ = ["Poller", "collect_snapshot", "run_cycle"]

logger = logging.getLogger(__name__)


async def collect_snapshot(client: ConnectClient) -> Snapshot:
    """Fetch every connector's tasks and build a snapshot, failing fast.

    Raises:
        ListError: Listing connectors failed.
        StatusError: Fetching one connector's status failed.
        EmptyTasksError: A connector reported no tasks.
    """
    connectors = await client.list_connectors()
    logger.debug("Listed %d connector(s).", len(connectors))

    task_states: dict[str, list[TaskState]] = {}
    for connector in connectors:
        task_states[connector] = await client.get_task_states(connector)

    return build_snapshot(connectors, task_states)


async def run_cycle(client: ConnectClient, store: MetricsStore) -> Snapshot | None:
    """Run one poll cycle and publish its outcome to *store*.

    Every exception is recorded in the store rather than propagated, so a
    broken cycle never takes the polling loop down with it.

    Returns:
        The published snapshot, or ``None`` if the cycle failed.
    """
    token = CYCLE_ID_CTX.set(uuid.uuid4().hex[:8])
    t0 = time.monotonic()
    try:
        try:
            snapshot = await collect_snapshot(client)
        except PollError as exc:
            logger.warning("Poll cycle failed: %s", exc)
            store.write(None, exc)
            return None
        except Exception as exc:
            logger.exception("Unexpected error in poll cycle.")
            store.write(None, exc)
            return None

        store.write(snapshot, None)
        logger.info(
            "Poll cycle ok — connectors=%d series=%d tasks=%d (%.0f ms)",
            len(snapshot.connectors),
            len(snapshot),
            sum(snapshot.counts.values()),
            (time.monotonic() - t0) * 1000,
        )
        return snapshot
    finally:
        CYCLE_ID_CTX.reset(token)


class Poller:
    """Periodic refresh of a :class:`MetricsStore` from a :class:`ConnectClient`.

    Args:
        store: Store the poller publishes into.  The poller is its only writer.
    """

    def __init__(self, store: MetricsStore) -> None:
        self._store = store
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def store(self) -> MetricsStore:
        return self._store

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, client: ConnectClient, clock: Clock, interval: float) -> None:
        """Start the background loop on the running event loop.

        Args:
            client: Connect API client queried on every tick.
            clock: Source of tick signals.
            interval: Seconds between ticks.

        Raises:
            OrchestratorError: The poller was already started.
            ValueError: *interval* is not positive.
        """
        if self._task is not None:
            raise OrchestratorError("Poller already started.")
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval!r}.")
        self._task = asyncio.create_task(
            self._loop(client, clock, interval),
            name="connect-exporter-poller",
        )
        logger.info("Poller started — interval %.1f s.", interval)

    async def stop(self) -> None:
        """Ask the loop to exit at its next wait point and wait until it has.

        Does not interrupt an in-flight Connect call.  Calling it before
        :meth:`start` or more than once is a no-op.
        """
        if self._task is None:
            return
        self._stop_event.set()
        await asyncio.shield(self._task)

    async def _loop(self, client: ConnectClient, clock: Clock, interval: float) -> None:
        stop_wait = asyncio.ensure_future(self._stop_event.wait())
        try:
            while True:
                tick = asyncio.ensure_future(clock.after(interval))
                await asyncio.wait({tick, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
                if stop_wait.done():
                    tick.cancel()
                    logger.info("Poller stopped.")
                    return
                await run_cycle(client, self._store)
        finally:
            stop_wait.cancel()
