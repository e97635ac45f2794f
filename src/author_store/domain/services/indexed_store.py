"""In-memory indexed store with snapshot isolation.

The committed state of the store is an immutable mapping of table name to
TableIndex. Transactions never change it in place:

- A read transaction keeps a reference to the mapping current at begin()
  and reads only from it. Later commits publish a new mapping and leave the
  old one untouched, so readers need no locks and never see a later write.
- A write transaction holds the store's write lock from begin() until it
  commits or aborts. The first insert into a table copies that table's
  TableIndex into the transaction; commit swaps the copies into a new
  committed mapping in one reference assignment.

Only one write transaction is open at a time, so a committing writer always
builds on the state it started from and no conflict detection is needed.

Usage:
    store = IndexedStore(build_schema())

    with store.write() as txn:
        store.insert(txn, "author", Author(1, "Ada", ["math", "cs"]))
        store.commit(txn)

    with store.read() as txn:
        for author in store.get(txn, "author", "subjects", "cs"):
            ...
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any

from author_store.domain.services.table_index import Group, TableIndex
from author_store.domain.value_objects import (
    DBSchema,
    IndexSchema,
    SchemaError,
    StoreError,
    TransactionId,
    TransactionMode,
    TransactionState,
)
from author_store.infrastructure.logging import get_logger
from author_store.infrastructure.metrics import MetricsRegistry
from author_store.ports.inbound.indexed_store import (
    StoreStats,
    Transaction,
    TransactionStateError,
    WriteLockTimeoutError,
)


class ResultIterator(Iterator[Any]):
    """Single-pass iterator over index groups, bound to a transaction.

    Records within a group are yielded in primary key order. When the scan
    covers several keys of a multi-valued index, each record is yielded
    only at its first key.

    Raises TransactionStateError from __next__ once the transaction closes.
    """

    def __init__(self, txn: Transaction, groups: Iterable[Group], distinct: bool) -> None:
        self._txn = txn
        self._records = self._generate(groups, distinct)

    def __iter__(self) -> ResultIterator:
        return self

    def __next__(self) -> Any:
        if not self._txn.is_active():
            raise TransactionStateError(
                f"transaction {self._txn.txn_id} is {self._txn.state.name.lower()}",
                self._txn.txn_id,
            )
        return next(self._records)

    @staticmethod
    def _generate(groups: Iterable[Group], distinct: bool) -> Iterator[Any]:
        seen: set[Any] = set()
        for _key, bucket in groups:
            for pk in sorted(bucket):
                if distinct:
                    if pk in seen:
                        continue
                    seen.add(pk)
                yield bucket[pk]


class IndexedStore:
    """Transactional in-memory store over a fixed schema.

    Usage:
        store = IndexedStore(schema, write_lock_timeout=5.0)
        txn = store.begin(writable=True)
        try:
            store.insert(txn, "author", author)
            store.commit(txn)
        finally:
            store.abort(txn)

    Thread Safety:
        Any number of threads may share a store. Writers are serialized by
        a single lock; readers never block.
    """

    def __init__(
        self,
        schema: DBSchema,
        write_lock_timeout: float | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            schema: Validated schema; one empty table is created per entry.
            write_lock_timeout: Default seconds to wait for the write lock.
                None waits forever.
            metrics: Optional metrics registry to record into.
        """
        self._schema = schema
        self._write_lock_timeout = write_lock_timeout
        self._metrics = metrics
        self._logger = get_logger(__name__)

        self._write_lock = threading.Lock()
        # Guards the committed mapping reference and the counters below
        self._state_lock = threading.Lock()

        self._tables: Mapping[str, TableIndex] = MappingProxyType(
            {table.name: TableIndex(table) for table in schema.tables}
        )

        self._next_txn_id = 1
        self._active: dict[TransactionMode, int] = {mode: 0 for mode in TransactionMode}
        self._committed_total = 0
        self._aborted_total = 0

        if self._metrics is not None:
            for name in self._tables:
                self._metrics.records.labels(table=name).set(0)

    @property
    def schema(self) -> DBSchema:
        return self._schema

    def begin(self, writable: bool = False, timeout: float | None = None) -> Transaction:
        """Open a read or write transaction.

        Args:
            writable: Open a write transaction (waits for the write lock).
            timeout: Seconds to wait for the write lock, overriding the
                store default. Ignored for read transactions.

        Returns:
            An active Transaction.

        Raises:
            WriteLockTimeoutError: If a deadline applies and expires.
        """
        mode = TransactionMode.from_writable(writable)
        if writable:
            self._acquire_write_lock(self._write_lock_timeout if timeout is None else timeout)

        with self._state_lock:
            txn_id = TransactionId(self._next_txn_id)
            self._next_txn_id += 1
            self._active[mode] += 1
            snapshot = self._tables

        if self._metrics is not None:
            self._metrics.transactions_active.labels(mode=mode.value).inc()

        self._logger.debug("transaction_begin", txn_id=txn_id, mode=mode.value)
        return Transaction(txn_id=txn_id, mode=mode, tables=snapshot)

    def insert(self, txn: Transaction, table: str, record: Any) -> None:
        """Insert or replace (by primary key) a record in a table.

        Args:
            txn: An active write transaction.
            table: Table name.
            record: Instance of the table's record type.

        Raises:
            SchemaError: Unknown table, wrong record type, unindexable value.
            UniqueConstraintViolation: A unique key belongs to another record.
            TransactionStateError: Read-only or closed transaction.
        """
        self._require_active(txn)
        if not txn.writable:
            raise TransactionStateError(
                f"transaction {txn.txn_id} is read-only", txn.txn_id
            )

        table_index = txn.pending.get(table)
        if table_index is None:
            table_index = self._committed_table(txn, table).copy()

        try:
            table_index.insert(record)
        except StoreError:
            self._count_insert(table, "error")
            raise

        txn.pending[table] = table_index
        self._count_insert(table, "success")

    def get(self, txn: Transaction, table: str, index: str, *args: Any) -> ResultIterator:
        """Iterate records through an index.

        Args:
            txn: An active transaction.
            table: Table name.
            index: Index name.
            *args: Nothing for a full scan, or one value to match exactly.

        Returns:
            A single-pass iterator bound to txn.

        Raises:
            SchemaError: Unknown table or index, or an invalid argument.
            TransactionStateError: Closed transaction.
        """
        table_index, index_schema = self._resolve(txn, table, index)
        if args:
            key = index_schema.indexer.from_args(*args)
            return ResultIterator(txn, table_index.lookup(index, key), distinct=False)
        return ResultIterator(
            txn, table_index.scan(index), distinct=index_schema.indexer.multi
        )

    def first(self, txn: Transaction, table: str, index: str, *args: Any) -> Any | None:
        """Return the first record get() would yield, or None."""
        return next(self.get(txn, table, index, *args), None)

    def lower_bound(self, txn: Transaction, table: str, index: str, *args: Any) -> ResultIterator:
        """Iterate records whose key is >= the argument, in ascending order.

        Raises:
            SchemaError: Unknown table or index, or not exactly one valid argument.
            TransactionStateError: Closed transaction.
        """
        table_index, index_schema = self._resolve(txn, table, index)
        key = index_schema.indexer.from_args(*args)
        return ResultIterator(
            txn, table_index.lower_bound(index, key), distinct=index_schema.indexer.multi
        )

    def get_prefix(self, txn: Transaction, table: str, index: str, prefix: str) -> ResultIterator:
        """Iterate records whose string key starts with prefix.

        Raises:
            SchemaError: Unknown table or index, or the index is not a string index.
            TransactionStateError: Closed transaction.
        """
        table_index, index_schema = self._resolve(txn, table, index)
        if not index_schema.indexer.supports_prefix:
            raise SchemaError(
                f"index {index!r} on table {table!r} does not support prefix scans"
            )
        key = index_schema.indexer.from_args(prefix)
        return ResultIterator(
            txn, table_index.prefix(index, key), distinct=index_schema.indexer.multi
        )

    def commit(self, txn: Transaction) -> None:
        """Commit a transaction.

        For a write transaction, publishes every pending table as part of a
        new committed state and releases the write lock. For a read
        transaction, only closes it.

        Raises:
            TransactionStateError: If the transaction is already closed.
        """
        self._require_active(txn)

        if txn.writable and txn.pending:
            with self._state_lock:
                tables = dict(self._tables)
                tables.update(txn.pending)
                self._tables = MappingProxyType(tables)
            if self._metrics is not None:
                for name, table_index in txn.pending.items():
                    self._metrics.records.labels(table=name).set(len(table_index))

        self._close(txn, TransactionState.COMMITTED)

    def abort(self, txn: Transaction) -> None:
        """Abort a transaction, discarding pending changes.

        Safe to call on a committed or aborted transaction; it does nothing.
        """
        if txn.is_terminal():
            return
        txn.pending.clear()
        self._close(txn, TransactionState.ABORTED)

    @contextmanager
    def read(self) -> Iterator[Transaction]:
        """Open a read transaction that is closed when the block exits."""
        txn = self.begin()
        try:
            yield txn
        finally:
            self.abort(txn)

    @contextmanager
    def write(self, timeout: float | None = None) -> Iterator[Transaction]:
        """Open a write transaction; it is aborted on exit unless committed."""
        txn = self.begin(writable=True, timeout=timeout)
        try:
            yield txn
        finally:
            self.abort(txn)

    def get_stats(self) -> StoreStats:
        """Return store statistics for monitoring."""
        with self._state_lock:
            return StoreStats(
                records={name: len(table) for name, table in self._tables.items()},
                active_reads=self._active[TransactionMode.READ],
                active_writes=self._active[TransactionMode.WRITE],
                committed_total=self._committed_total,
                aborted_total=self._aborted_total,
            )

    def _acquire_write_lock(self, timeout: float | None) -> None:
        started = time.monotonic()
        if timeout is None:
            acquired = self._write_lock.acquire()
        else:
            acquired = self._write_lock.acquire(timeout=timeout)
        waited = time.monotonic() - started

        if self._metrics is not None:
            self._metrics.write_lock_wait_seconds.observe(waited)
            if not acquired:
                self._metrics.write_lock_timeouts_total.inc()

        if not acquired:
            raise WriteLockTimeoutError(timeout)

    def _close(self, txn: Transaction, state: TransactionState) -> None:
        txn.state = state
        with self._state_lock:
            self._active[txn.mode] -= 1
            if state is TransactionState.COMMITTED:
                self._committed_total += 1
            else:
                self._aborted_total += 1

        if txn.writable:
            self._write_lock.release()

        status = "commit" if state is TransactionState.COMMITTED else "abort"
        if self._metrics is not None:
            self._metrics.transactions_active.labels(mode=txn.mode.value).dec()
            self._metrics.transactions_total.labels(mode=txn.mode.value, status=status).inc()

        self._logger.debug(
            "transaction_closed",
            txn_id=txn.txn_id,
            mode=txn.mode.value,
            status=status,
            duration_ms=round((time.monotonic() - txn.started_at) * 1000, 3),
        )

    def _require_active(self, txn: Transaction) -> None:
        if not txn.is_active():
            raise TransactionStateError(
                f"transaction {txn.txn_id} is {txn.state.name.lower()}", txn.txn_id
            )

    def _committed_table(self, txn: Transaction, table: str) -> TableIndex:
        # Raises SchemaError for unknown names
        self._schema.table(table)
        return txn.tables[table]

    def _resolve(self, txn: Transaction, table: str, index: str) -> tuple[TableIndex, IndexSchema]:
        self._require_active(txn)
        table_index = txn.pending.get(table)
        if table_index is None:
            table_index = self._committed_table(txn, table)
        index_schema = table_index.schema.index(index)
        if self._metrics is not None:
            self._metrics.index_scans_total.labels(table=table, index=index).inc()
        return table_index, index_schema

    def _count_insert(self, table: str, status: str) -> None:
        if self._metrics is not None:
            self._metrics.inserts_total.labels(table=table, status=status).inc()
