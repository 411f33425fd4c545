"""Interface the poller uses to read connector and task state.

The poller only ever talks to a :class:`ConnectClient`.  Production code
passes a :class:`~connect_exporter.upstream.http_client.ConnectHttpClient`;
tests pass a scripted stand-in with the same two coroutines.

Error contract
--------------
* :meth:`ConnectClient.list_connectors` raises
  :class:`~connect_exporter.core.exceptions.ListError`.
* :meth:`ConnectClient.get_task_states` raises
  :class:`~connect_exporter.core.exceptions.StatusError` naming the connector.

Both carry ``status_code=None`` for a transport failure and the HTTP status
for a non-2xx answer, so the two cases stay distinguishable even though the
poller treats them the same way.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from connect_exporter.core.models import TaskState

__all__ = ["ConnectClient"]


@runtime_checkable
class ConnectClient(Protocol):
    """Structural protocol for a Kafka Connect REST client."""

    async def list_connectors(self) -> list[str]:
        """Return the names of all deployed connectors, in server order."""
        ...

    async def get_task_states(self, connector: str) -> list[TaskState]:
        """Return the current state of every task of *connector*."""
        ...
