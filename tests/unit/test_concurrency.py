"""Concurrency tests for IndexedStore: writer serialization and snapshots."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from author_store.application import AUTHOR_TABLE
from author_store.domain.entities import Author
from author_store.domain.services import IndexedStore
from author_store.infrastructure.metrics import MetricsRegistry
from author_store.ports.inbound import WriteLockTimeoutError


def ids(store: IndexedStore) -> list[int]:
    with store.read() as txn:
        return [author.id for author in store.get(txn, AUTHOR_TABLE, "id")]


@pytest.mark.unit
class TestWriterSerialization:
    """Only one write transaction is open at a time."""

    def test_parallel_writers_all_commit(self, store: IndexedStore) -> None:
        def save(author_id: int) -> None:
            with store.write() as txn:
                store.insert(txn, AUTHOR_TABLE, Author(author_id, f"author-{author_id}", ["cs"]))
                store.commit(txn)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(save, range(50)))

        assert ids(store) == list(range(50))
        with store.read() as txn:
            assert len(list(store.get(txn, AUTHOR_TABLE, "subjects", "cs"))) == 50
        assert store.get_stats().active_writes == 0

    def test_writers_never_overlap(self, store: IndexedStore) -> None:
        open_writers = 0
        peak = 0
        counter_lock = threading.Lock()

        def save(author_id: int) -> None:
            nonlocal open_writers, peak
            with store.write() as txn:
                with counter_lock:
                    open_writers += 1
                    peak = max(peak, open_writers)
                store.insert(txn, AUTHOR_TABLE, Author(author_id, "x"))
                with counter_lock:
                    open_writers -= 1
                store.commit(txn)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(save, range(40)))

        assert peak == 1

    def test_blocked_writer_proceeds_after_commit(self, store: IndexedStore) -> None:
        first = store.begin(writable=True)
        store.insert(first, AUTHOR_TABLE, Author(1, "Ada"))
        started = threading.Event()
        done = threading.Event()

        def second_writer() -> None:
            started.set()
            with store.write() as txn:
                store.insert(txn, AUTHOR_TABLE, Author(2, "Grace"))
                store.commit(txn)
            done.set()

        worker = threading.Thread(target=second_writer)
        worker.start()
        started.wait(timeout=5)

        assert not done.wait(timeout=0.1)

        store.commit(first)
        worker.join(timeout=5)

        assert done.is_set()
        assert ids(store) == [1, 2]

    def test_write_lock_timeout(self, schema, metrics_registry: MetricsRegistry) -> None:
        store = IndexedStore(schema, write_lock_timeout=0.05, metrics=metrics_registry)
        holder = store.begin(writable=True)

        with pytest.raises(WriteLockTimeoutError) as exc_info:
            store.begin(writable=True)

        assert exc_info.value.timeout == 0.05
        assert metrics_registry._registry.get_sample_value(
            "store_write_lock_timeouts_total"
        ) == 1
        store.abort(holder)

        # Lock is free again once the holder closes
        with store.write() as txn:
            store.commit(txn)

    def test_per_call_timeout_overrides_default(self, store: IndexedStore) -> None:
        holder = store.begin(writable=True)

        with pytest.raises(WriteLockTimeoutError):
            with store.write(timeout=0.01):
                pass

        store.abort(holder)
        assert store.get_stats().active_writes == 0

    def test_reader_not_blocked_by_writer(self, store: IndexedStore) -> None:
        writer = store.begin(writable=True)
        result: list[list[int]] = []

        worker = threading.Thread(target=lambda: result.append(ids(store)))
        worker.start()
        worker.join(timeout=5)

        assert result == [[]]
        store.abort(writer)


@pytest.mark.unit
class TestSnapshotsUnderLoad:
    """Readers keep a consistent view while writers commit."""

    def test_reader_view_stable_during_writes(self, store: IndexedStore) -> None:
        with store.write() as txn:
            for author_id in range(10):
                store.insert(txn, AUTHOR_TABLE, Author(author_id, "seed", ["cs"]))
            store.commit(txn)

        reader = store.begin()
        stop = threading.Event()

        def writer() -> None:
            author_id = 10
            while not stop.is_set() and author_id < 200:
                with store.write() as txn:
                    store.insert(txn, AUTHOR_TABLE, Author(author_id, "late", ["cs"]))
                    store.insert(txn, AUTHOR_TABLE, Author(0, "renamed", []))
                    store.commit(txn)
                author_id += 1

        worker = threading.Thread(target=writer)
        worker.start()
        try:
            for _ in range(20):
                by_id = list(store.get(reader, AUTHOR_TABLE, "id"))
                by_subject = list(store.get(reader, AUTHOR_TABLE, "subjects", "cs"))

                assert [a.id for a in by_id] == list(range(10))
                assert all(a.name == "seed" for a in by_id)
                assert by_subject == by_id
        finally:
            stop.set()
            worker.join(timeout=5)
            store.abort(reader)

        assert ids(store)[0] == 0
        with store.read() as txn:
            assert store.first(txn, AUTHOR_TABLE, "id", 0) == Author(0, "renamed")
