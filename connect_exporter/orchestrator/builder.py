"""Pure transform from raw connector/task listings to a :class:`Snapshot`."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence

from connect_exporter.core.exceptions import EmptyTasksError
from connect_exporter.core.models import Snapshot, TaskKey, TaskState

__all__ = ["build_snapshot"]


def build_snapshot(
    connectors: Sequence[str],
    task_states: Mapping[str, Sequence[TaskState]],
) -> Snapshot:
    """Count tasks per ``(connector, state, worker)``.

    Connectors are visited in the order given.  A connector that has no
    entry in *task_states*, or an empty one, fails the whole build; nothing
    partial is ever returned.

    Args:
        connectors: Connector names as returned by the listing call.
        task_states: Task states of every listed connector.

    Returns:
        The snapshot for this cycle.  Empty when *connectors* is empty.

    Raises:
        EmptyTasksError: A listed connector has zero tasks.
    """
    counts: Counter[TaskKey] = Counter()
    for connector in connectors:
        tasks = task_states.get(connector)
        if not tasks:
            raise EmptyTasksError(connector)
        for task in tasks:
            counts[TaskKey(connector, task.state, task.worker_id)] += 1
    return Snapshot(counts)
