"""HTTP endpoint serving the published snapshot to Prometheus scrapers.

The handler answers in one of two ways:

* **500** with the error message as body while the latest poll cycle has
  failed.  The retained snapshot is *not* served in that state: a stale but
  healthy-looking snapshot would hide the fact that polling is failing.
* **200** with the encoded snapshot otherwise.  The store's read lock is held
  until encoding has finished, so the body reflects exactly one cycle.
"""

from __future__ import annotations

import logging

from aiohttp import web

from connect_exporter.exposition.renderer import SnapshotRenderer
from connect_exporter.orchestrator.store import MetricsStore

__all__ = ["MetricsServer"]

logger = logging.getLogger(__name__)


class MetricsServer:
    """Lightweight aiohttp server exposing a :class:`MetricsStore`.

    Args:
        store: Store to read snapshots and errors from.
        renderer: Encoder for the exposition format.
        host: Bind address.
        port: Bind port; ``0`` picks a free one (see :attr:`port`).
        path: Scrape path.
        shutdown_timeout: Seconds in-flight requests get on :meth:`stop`.
    """

    def __init__(
        self,
        store: MetricsStore,
        renderer: SnapshotRenderer,
        *,
        host: str = "0.0.0.0",
        port: int = 9400,
        path: str = "/metrics",
        shutdown_timeout: float = 10.0,
    ) -> None:
        self._store = store
        self._renderer = renderer
        self._host = host
        self._port = port
        self._path = path
        self._shutdown_timeout = shutdown_timeout
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def port(self) -> int:
        """The bound port once started, the configured one before."""
        if self._runner is not None and self._runner.addresses:
            return self._runner.addresses[0][1]
        return self._port

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(self._path, self.handle_metrics)
        return app

    async def start(self) -> None:
        """Bind the socket and start serving."""
        self._runner = web.AppRunner(
            self.make_app(),
            access_log=None,
            shutdown_timeout=self._shutdown_timeout,
        )
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        logger.info("Metrics server listening on %s:%d%s", self._host, self.port, self._path)

    async def stop(self) -> None:
        """Stop serving.  Safe to call before :meth:`start` or twice."""
        if self._runner is not None:
            await self._runner.cleanup()
            logger.info("Metrics server stopped.")
        self._runner = None
        self._site = None

    async def handle_metrics(self, request: web.Request) -> web.Response:
        """Serve the current snapshot, or the current poll error."""
        if (error := self._store.err()) is not None:
            return self._error_response(error)

        with self._store.reading() as (snapshot, error):
            if error is not None:
                return self._error_response(error)
            body = self._renderer.render(snapshot)

        return web.Response(
            body=body,
            content_type=self._renderer.content_type,
            charset=self._renderer.charset,
        )

    @staticmethod
    def _error_response(error: Exception) -> web.Response:
        logger.debug("Refusing scrape: %s", error)
        return web.Response(status=500, text=str(error))
