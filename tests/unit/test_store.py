"""Unit tests for :class:`MetricsStore` and :class:`ReadWriteLock`.

Tests cover:
- Store lifecycle: empty at creation, success / failure writes, error
  clearing, generation counter.
- Atomic publication: a threaded writer alternating between two snapshots
  while many readers assert they only ever see one of them in full.
- Lock discipline: readers share the lock, a writer excludes readers, a
  waiting writer is not starved by a stream of readers.
"""

from __future__ import annotations

import threading
import time

import pytest

from connect_exporter.core.exceptions import EmptyTasksError, ListError
from connect_exporter.core.models import Snapshot, TaskKey
from connect_exporter.orchestrator.store import MetricsStore, ReadWriteLock

_S1 = Snapshot({TaskKey("a", "RUNNING", "w1"): 2, TaskKey("b", "RUNNING", "w1"): 1})
_S2 = Snapshot(
    {
        TaskKey("a", "FAILED", "w2"): 2,
        TaskKey("b", "PAUSED", "w3"): 1,
        TaskKey("c", "RUNNING", "w1"): 4,
    }
)


# ---------------------------------------------------------------------------
# Store semantics
# ---------------------------------------------------------------------------


class TestMetricsStore:
    def test_starts_empty(self) -> None:
        store = MetricsStore()
        assert store.read() == (None, None)
        assert store.err() is None
        assert store.generation == 0

    def test_successful_write_publishes_snapshot(self) -> None:
        store = MetricsStore()
        store.write(_S1, None)
        assert store.read() == (_S1, None)
        assert store.generation == 1

    def test_failed_write_retains_previous_snapshot(self) -> None:
        store = MetricsStore()
        store.write(_S1, None)
        error = ListError(status_code=503)
        store.write(None, error)
        snapshot, err = store.read()
        assert snapshot is _S1
        assert err is error
        assert store.err() is error

    def test_snapshot_is_ignored_when_error_given(self) -> None:
        store = MetricsStore()
        store.write(_S1, None)
        store.write(_S2, EmptyTasksError("b"))
        assert store.read().snapshot is _S1

    def test_failure_before_first_success_has_no_snapshot(self) -> None:
        store = MetricsStore()
        store.write(None, ListError(status_code=500))
        snapshot, err = store.read()
        assert snapshot is None
        assert isinstance(err, ListError)

    def test_success_clears_error(self) -> None:
        store = MetricsStore()
        store.write(_S1, None)
        store.write(None, ListError(status_code=500))
        store.write(_S2, None)
        assert store.read() == (_S2, None)
        assert store.err() is None
        assert store.generation == 3

    def test_write_requires_snapshot_or_error(self) -> None:
        with pytest.raises(ValueError):
            MetricsStore().write(None, None)

    def test_reading_yields_current_pair(self) -> None:
        store = MetricsStore()
        store.write(_S1, None)
        with store.reading() as (snapshot, err):
            assert snapshot is _S1
            assert err is None


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestAtomicPublication:
    def test_readers_never_observe_mixed_snapshots(self) -> None:
        store = MetricsStore()
        store.write(_S1, None)
        stop = threading.Event()
        torn: list[object] = []

        def writer() -> None:
            flip = False
            while not stop.is_set():
                store.write(_S2 if flip else _S1, None)
                flip = not flip

        def reader() -> None:
            for _ in range(2000):
                with store.reading() as (snapshot, _):
                    seen = {key: snapshot.counts[key] for key in snapshot}
                if seen != dict(_S1.counts) and seen != dict(_S2.counts):
                    torn.append(seen)

        w = threading.Thread(target=writer)
        readers = [threading.Thread(target=reader) for _ in range(8)]
        w.start()
        for r in readers:
            r.start()
        for r in readers:
            r.join(timeout=30)
        stop.set()
        w.join(timeout=30)

        assert not torn
        assert store.generation > 1


class TestReadWriteLock:
    def test_readers_share_the_lock(self) -> None:
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=5)

        def reader() -> None:
            with lock.read_locked():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        # All three parties meet only if both readers hold the lock together.
        with lock.read_locked():
            inside.wait()
        for t in threads:
            t.join(timeout=5)

    def test_writer_waits_for_active_reader(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []
        reader_in = threading.Event()
        release_reader = threading.Event()

        def reader() -> None:
            with lock.read_locked():
                reader_in.set()
                release_reader.wait(timeout=5)
                order.append("reader-out")

        def writer() -> None:
            with lock.write_locked():
                order.append("writer-in")

        r = threading.Thread(target=reader)
        r.start()
        reader_in.wait(timeout=5)
        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        assert order == []
        release_reader.set()
        r.join(timeout=5)
        w.join(timeout=5)
        assert order == ["reader-out", "writer-in"]

    def test_waiting_writer_blocks_new_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []
        first_in = threading.Event()
        release_first = threading.Event()

        def first_reader() -> None:
            with lock.read_locked():
                first_in.set()
                release_first.wait(timeout=5)
                order.append("first-out")

        def writer() -> None:
            with lock.write_locked():
                order.append("writer")

        def late_reader() -> None:
            with lock.read_locked():
                order.append("late-reader")

        t1 = threading.Thread(target=first_reader)
        t1.start()
        first_in.wait(timeout=5)
        tw = threading.Thread(target=writer)
        tw.start()
        time.sleep(0.05)
        t2 = threading.Thread(target=late_reader)
        t2.start()
        time.sleep(0.05)
        assert order == []
        release_first.set()
        for t in (t1, tw, t2):
            t.join(timeout=5)
        assert order == ["first-out", "writer", "late-reader"]
