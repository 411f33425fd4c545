"""Async HTTP client for the Kafka Connect REST API.

Wraps :class:`httpx.AsyncClient` and maps every failure onto the exporter's
poll-cycle exceptions:

* **Transport errors** (connection refused, DNS, timeouts) →
  :class:`~connect_exporter.core.exceptions.ListError` /
  :class:`~connect_exporter.core.exceptions.StatusError` with
  ``status_code=None`` and the httpx exception class in the reason.
* **Non-2xx answers** → the same exceptions carrying the HTTP status.
* **Undecodable bodies** (invalid JSON, schema mismatch) → the same
  exceptions with a ``decoding response`` reason.

Requests are never retried here: the poll interval is the retry mechanism.
Timeouts are the transport's concern and are configured through
``timeout``.

Typical usage::

    from connect_exporter.upstream.http_client import ConnectHttpClient

    async with ConnectHttpClient("http://connect:8083") as client:
        names = await client.list_connectors()
        tasks = await client.get_task_states(names[0])
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Final
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from connect_exporter.core.exceptions import ListError, StatusError
from connect_exporter.core.models import ConnectorStatus, TaskState

__all__ = ["ConnectHttpClient"]

logger = logging.getLogger(__name__)

#: Default per-request timeout in seconds.
_DEFAULT_TIMEOUT: Final[float] = 10.0

_CONNECTOR_NAMES: Final[TypeAdapter[list[str]]] = TypeAdapter(list[str])


class ConnectHttpClient:
    """Kafka Connect REST client satisfying
    :class:`~connect_exporter.upstream.base.ConnectClient`.

    Use as an ``async with`` context manager to guarantee the connection pool
    is closed on exit, or call :meth:`close` yourself.

    Args:
        base_url: Connect REST endpoint, e.g. ``"http://connect:8083"``.
        timeout: Per-request timeout in seconds (connect, read, write, pool).
        transport: Optional httpx transport; tests pass
            :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must not be empty.")
        self._base_url = base_url
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ConnectHttpClient:
        self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Connect API
    # ------------------------------------------------------------------

    async def list_connectors(self) -> list[str]:
        """``GET /connectors``.

        Raises:
            ListError: Transport failure, non-2xx status, or a body that is
                not a JSON list of strings.
        """
        try:
            response = await self._get("/connectors")
        except httpx.TransportError as exc:
            raise ListError(reason=_transport_reason(exc)) from exc

        if not response.is_success:
            raise ListError(status_code=response.status_code)

        try:
            return _CONNECTOR_NAMES.validate_json(response.content)
        except ValidationError as exc:
            raise ListError(reason=f"decoding response: {exc.error_count()} error(s)") from exc

    async def get_connector_status(self, connector: str) -> ConnectorStatus:
        """``GET /connectors/{connector}/status``.

        Raises:
            StatusError: Transport failure, non-2xx status, or a body that
                does not match :class:`~connect_exporter.core.models.ConnectorStatus`.
        """
        path = f"/connectors/{quote(connector, safe='')}/status"
        try:
            response = await self._get(path)
        except httpx.TransportError as exc:
            raise StatusError(connector, reason=_transport_reason(exc)) from exc

        if not response.is_success:
            raise StatusError(connector, status_code=response.status_code)

        try:
            return ConnectorStatus.model_validate_json(response.content)
        except ValidationError as exc:
            raise StatusError(
                connector, reason=f"decoding response: {exc.error_count()} error(s)"
            ) from exc

    async def get_task_states(self, connector: str) -> list[TaskState]:
        """Return the ``tasks`` of :meth:`get_connector_status`."""
        status = await self.get_connector_status(connector)
        return list(status.tasks)

    async def close(self) -> None:
        """Close the underlying HTTP client.  Safe to call more than once."""
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
            logger.debug("Connect HTTP session closed.")
        self._http = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
            logger.debug("Connect HTTP session opened (base_url=%r).", self._base_url)
        return self._http

    async def _get(self, path: str) -> httpx.Response:
        client = self._ensure_client()
        response = await client.get(path)
        logger.debug("GET %s → %d", path, response.status_code)
        return response


def _transport_reason(exc: httpx.TransportError) -> str:
    detail = str(exc)
    return f"{type(exc).__name__}: {detail}" if detail else type(exc).__name__
