"""Concurrency-safe holder of the latest snapshot and poll error.

The poller is the only writer; any number of scrape handlers read.  A scrape
must see one coherent cycle across every label triple, so reads and writes
are separated by a many-reader/one-writer lock:

* :meth:`MetricsStore.write` takes the write lock and swaps in a new
  :class:`StoreState`.  When an error is given, the previous snapshot is
  carried over unchanged.
* :meth:`MetricsStore.read` and :meth:`MetricsStore.reading` take the read
  lock.  Readers run concurrently with each other.
* :meth:`MetricsStore.err` takes no lock at all; it is the cheap pre-check
  scrape handlers run before committing to a full read.

The lock is writer-preferring: once the poller asks for it, new readers
queue behind it, so a steady stream of scrapes cannot starve the poller.
Critical sections never ``await``, so the lock may be taken both from the
event loop and from worker threads.

Typical usage::

    store = MetricsStore()
    store.write(snapshot, None)           # successful cycle
    store.write(None, ListError(503))     # failed cycle, snapshot retained

    with store.reading() as (snapshot, error):
        body = renderer.render(snapshot)   # lock held until encoding is done
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import NamedTuple

from connect_exporter.core.models import Snapshot

__all__ = ["ReadWriteLock", "StoreState", "MetricsStore"]

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Writer-preferring reader/writer lock built on :class:`threading.Condition`."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class StoreState(NamedTuple):
    """The ``(snapshot, error)`` pair published by one write."""

    snapshot: Snapshot | None
    error: Exception | None


_EMPTY = StoreState(snapshot=None, error=None)


class MetricsStore:
    """Latest published snapshot plus the error of the latest cycle, if any.

    Starts empty: no snapshot and no error until the first cycle completes.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._state = _EMPTY
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of writes applied so far."""
        return self._generation

    def write(self, snapshot: Snapshot | None, error: Exception | None) -> None:
        """Publish the outcome of one poll cycle.

        Args:
            snapshot: The new snapshot.  Ignored when *error* is not ``None``.
            error: The error that aborted the cycle, or ``None`` on success.
                A successful write always clears a previously stored error.

        Raises:
            ValueError: If both arguments are ``None``.
        """
        if error is None and snapshot is None:
            raise ValueError("write() needs a snapshot or an error.")
        with self._lock.write_locked():
            if error is not None:
                self._state = StoreState(self._state.snapshot, error)
            else:
                self._state = StoreState(snapshot, None)
            self._generation += 1
        logger.debug(
            "Store generation %d published (error=%s).",
            self._generation,
            type(error).__name__ if error is not None else None,
        )

    def read(self) -> StoreState:
        """Return the current ``(snapshot, error)`` pair."""
        with self._lock.read_locked():
            return self._state

    @contextmanager
    def reading(self) -> Iterator[StoreState]:
        """Hold the read lock for the body of a ``with`` block.

        No write can land until the block exits, so whatever is derived from
        the yielded pair inside the block belongs to a single cycle.
        """
        with self._lock.read_locked():
            yield self._state

    def err(self) -> Exception | None:
        """Return the error recorded by the latest write, without locking."""
        return self._state.error
