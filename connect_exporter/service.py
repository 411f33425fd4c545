"""Process lifecycle: wire client, clock, poller and HTTP server together.

:func:`run_exporter` is the long-running mode used by ``python -m
connect_exporter``.  It starts the poller and the metrics server, waits for
``SIGTERM`` / ``SIGINT`` (or a caller-supplied event), and tears everything
down in reverse order:

1. The metrics server stops accepting scrapes; in-flight ones get
   ``shutdown_timeout`` seconds.
2. :meth:`~connect_exporter.orchestrator.poller.Poller.stop` returns once the
   polling task has exited, so no task outlives this coroutine.
3. The Connect HTTP session is closed.

:func:`run_single_poll` runs exactly one cycle and returns the encoded
exposition, for ``--once`` runs and ad-hoc checks against a cluster.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from connect_exporter.core.exceptions import ConfigError
from connect_exporter.core.settings import Settings
from connect_exporter.exposition.renderer import SnapshotRenderer
from connect_exporter.exposition.server import MetricsServer
from connect_exporter.orchestrator.clock import Clock, SystemClock
from connect_exporter.orchestrator.poller import Poller, run_cycle
from connect_exporter.orchestrator.store import MetricsStore
from connect_exporter.upstream.base import ConnectClient
from connect_exporter.upstream.http_client import ConnectHttpClient

__all__ = ["run_exporter", "run_single_poll"]

logger = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def _require_connect_host(settings: Settings) -> None:
    if not settings.connect_configured:
        raise ConfigError("No Kafka Connect host configured. Set CONNECT_HOST.")


async def run_exporter(
    settings: Settings,
    *,
    client: ConnectClient | None = None,
    clock: Clock | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Poll Kafka Connect and serve metrics until asked to stop.

    Args:
        settings: Loaded settings.
        client: Connect client override; an :class:`ConnectHttpClient` for
            ``settings.connect_base_url`` is created when ``None``.
        clock: Tick source override; :class:`SystemClock` when ``None``.
        stop_event: Event that ends the run when set.  When ``None``, one is
            created and set by ``SIGTERM`` / ``SIGINT`` handlers.

    Raises:
        ConfigError: No Connect host is configured and no client was given.
    """
    if client is None:
        _require_connect_host(settings)

    async with contextlib.AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(
                ConnectHttpClient(settings.connect_base_url, timeout=settings.connect_timeout)
            )

        store = MetricsStore()
        poller = Poller(store)
        server = MetricsServer(
            store,
            SnapshotRenderer(process_metrics=settings.process_metrics),
            host=settings.prometheus_host,
            port=settings.prometheus_port,
            path=settings.prometheus_path,
            shutdown_timeout=settings.shutdown_timeout,
        )

        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        if stop_event is None:
            stop_event = asyncio.Event()
            for sig in _SHUTDOWN_SIGNALS:
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(sig, _request_shutdown, stop_event, sig.name)
                    installed.append(sig)

        try:
            poller.start(client, clock or SystemClock(), settings.connect_poll_interval)
            stack.push_async_callback(poller.stop)
            await server.start()
            stack.push_async_callback(server.stop)

            logger.info(
                "Exporter running — connect=%s interval=%.1f s",
                getattr(client, "base_url", type(client).__name__),
                settings.connect_poll_interval,
            )
            await stop_event.wait()
            logger.info("Shutting down.")
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    logger.info("Shutdown complete.")


def _request_shutdown(stop_event: asyncio.Event, signame: str) -> None:
    if not stop_event.is_set():
        logger.info("Received %s — graceful shutdown requested.", signame)
    stop_event.set()


async def run_single_poll(
    settings: Settings,
    *,
    client: ConnectClient | None = None,
) -> bytes:
    """Run one poll cycle and return the encoded exposition.

    Raises:
        ConfigError: No Connect host is configured and no client was given.
        PollError: The cycle failed.
    """
    if client is None:
        _require_connect_host(settings)

    async with contextlib.AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(
                ConnectHttpClient(settings.connect_base_url, timeout=settings.connect_timeout)
            )
        store = MetricsStore()
        await run_cycle(client, store)

    snapshot, error = store.read()
    if error is not None:
        raise error
    return SnapshotRenderer(process_metrics=settings.process_metrics).render(snapshot)
