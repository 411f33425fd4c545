"""Shared pytest fixtures and configuration for the exporter test suite.

This file is loaded automatically by pytest before any test module.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping

import pytest
from pydantic_settings import SettingsConfigDict

from connect_exporter.core import configure_logging
from connect_exporter.core.exceptions import ListError, StatusError
from connect_exporter.core.models import TaskState
from connect_exporter.core.settings import Settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _configure_test_logging() -> None:
    """Force DEBUG logging in text format for every test."""
    configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove exporter env vars and disable ``.env`` loading for one test."""
    prefixes = (
        "CONNECT_",
        "PROMETHEUS_",
        "PROCESS_METRICS",
        "SHUTDOWN_TIMEOUT",
        "LOG_LEVEL",
        "LOG_FORMAT",
    )
    for key in list(os.environ):
        if any(key.startswith(prefix) for prefix in prefixes):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setattr(
        Settings,
        "model_config",
        SettingsConfigDict(env_file=None, env_file_encoding="utf-8", extra="ignore"),
    )


# ---------------------------------------------------------------------------
# Scripted Connect client
# ---------------------------------------------------------------------------


def _task(state: str, worker: str, task_id: int = 0) -> TaskState:
    """Shorthand for building a :class:`TaskState` in tests."""
    return TaskState(id=task_id, state=state, worker_id=worker)


class ScriptedClient:
    """In-memory :class:`~connect_exporter.upstream.base.ConnectClient`.

    Attributes are plain and mutable so a test can change the script between
    poll cycles.  Every call is appended to :attr:`calls`.
    """

    def __init__(
        self,
        connectors: Iterable[str] = (),
        tasks: Mapping[str, list[TaskState]] | None = None,
        *,
        list_error: Exception | None = None,
        status_errors: Mapping[str, Exception] | None = None,
    ) -> None:
        self.connectors = list(connectors)
        self.tasks = dict(tasks or {})
        self.list_error = list_error
        self.status_errors = dict(status_errors or {})
        self.calls: list[tuple[str, ...]] = []

    async def list_connectors(self) -> list[str]:
        self.calls.append(("list",))
        if self.list_error is not None:
            raise self.list_error
        return list(self.connectors)

    async def get_task_states(self, connector: str) -> list[TaskState]:
        self.calls.append(("status", connector))
        if connector in self.status_errors:
            raise self.status_errors[connector]
        if connector not in self.tasks:
            raise StatusError(connector, status_code=404)
        return list(self.tasks[connector])


@pytest.fixture()
def make_client() -> Callable[..., ScriptedClient]:
    """Factory for :class:`ScriptedClient` instances."""
    return ScriptedClient


@pytest.fixture()
def conn_a_client() -> ScriptedClient:
    """One connector with two RUNNING tasks on w1 and one FAILED on w2."""
    return ScriptedClient(
        ["conn-a"],
        {
            "conn-a": [
                _task("RUNNING", "w1", 0),
                _task("RUNNING", "w1", 1),
                _task("FAILED", "w2", 2),
            ]
        },
    )


@pytest.fixture()
def list_error() -> ListError:
    return ListError(reason="ConnectError: connection refused")


@pytest.fixture()
def logger() -> logging.Logger:
    """Return a ``logging.Logger`` scoped to test code."""
    return logging.getLogger("tests")
