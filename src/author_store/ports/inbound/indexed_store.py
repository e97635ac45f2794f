"""Indexed Store port: transactions, inserts and index scans.

This inbound port defines the contract the request layer uses to reach the
store: open a transaction, insert or scan by index, then commit or abort.

Key responsibilities:
- Snapshot-isolated read transactions that never block
- A single serialized write transaction at a time
- Atomic maintenance of every index on insert
- Ordered, single-pass iteration bound to a transaction
"""

from __future__ import annotations

import time
from abc import abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from author_store.domain.value_objects import (
    IndexKey,
    StoreError,
    TransactionId,
    TransactionMode,
    TransactionState,
)

if TYPE_CHECKING:
    from author_store.domain.services.table_index import TableIndex


@dataclass(eq=False)
class Transaction:
    """A store transaction.

    Attributes:
        txn_id: Unique, increasing identifier.
        mode: READ or WRITE.
        tables: Committed table contents as of begin(). Never mutated.
        state: Lifecycle state.
        pending: Private copies of tables this write transaction changed.
    """

    txn_id: TransactionId
    mode: TransactionMode
    tables: Mapping[str, TableIndex]
    state: TransactionState = TransactionState.ACTIVE
    pending: dict[str, TableIndex] = field(default_factory=dict)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def writable(self) -> bool:
        return self.mode is TransactionMode.WRITE

    def is_active(self) -> bool:
        """Return True if transaction can still perform operations."""
        return self.state.is_active()

    def is_terminal(self) -> bool:
        """Return True if transaction has ended."""
        return self.state.is_terminal()


@dataclass
class StoreStats:
    """Statistics for store monitoring."""

    records: dict[str, int]
    active_reads: int
    active_writes: int
    committed_total: int
    aborted_total: int


class Store(Protocol):
    """Protocol for the transactional indexed store.

    Thread Safety:
        All methods are safe to call from multiple threads. A single
        Transaction must not be shared between threads.
    """

    @abstractmethod
    def begin(self, writable: bool = False, timeout: float | None = None) -> Transaction:
        """Open a transaction.

        Read transactions capture the committed state at this call and never
        block. Write transactions wait until no other write transaction is
        open.

        Args:
            writable: Open a write transaction.
            timeout: Seconds to wait for the write lock; None uses the
                store default, which by default waits forever.

        Raises:
            WriteLockTimeoutError: If a deadline applies and expires.
        """
        ...

    @abstractmethod
    def insert(self, txn: Transaction, table: str, record: Any) -> None:
        """Insert or replace (by primary key) a record.

        Either every index reflects the new record or none does.

        Raises:
            SchemaError: Unknown table, wrong record type, unindexable value.
            UniqueConstraintViolation: A unique key belongs to another record.
            TransactionStateError: Read-only or closed transaction.
        """
        ...

    @abstractmethod
    def get(self, txn: Transaction, table: str, index: str, *args: Any) -> Iterator[Any]:
        """Iterate records through an index.

        With no arguments, yields every record in ascending key order. With
        one argument, yields the records stored under exactly that key.

        Raises:
            SchemaError: Unknown table or index, or an invalid argument.
            TransactionStateError: Closed transaction.
        """
        ...

    @abstractmethod
    def first(self, txn: Transaction, table: str, index: str, *args: Any) -> Any | None:
        """Return the first record get() would yield, or None."""
        ...

    @abstractmethod
    def lower_bound(self, txn: Transaction, table: str, index: str, *args: Any) -> Iterator[Any]:
        """Iterate records whose key is greater than or equal to the argument."""
        ...

    @abstractmethod
    def get_prefix(self, txn: Transaction, table: str, index: str, prefix: str) -> Iterator[Any]:
        """Iterate records whose string key starts with prefix."""
        ...

    @abstractmethod
    def commit(self, txn: Transaction) -> None:
        """Publish a write transaction's inserts; close a read transaction.

        Raises:
            TransactionStateError: If the transaction is already closed.
        """
        ...

    @abstractmethod
    def abort(self, txn: Transaction) -> None:
        """Discard pending changes. Does nothing on a closed transaction."""
        ...

    @abstractmethod
    def read(self) -> AbstractContextManager[Transaction]:
        """Open a read transaction that is closed on exit."""
        ...

    @abstractmethod
    def write(self, timeout: float | None = None) -> AbstractContextManager[Transaction]:
        """Open a write transaction that is aborted on exit unless committed."""
        ...

    @abstractmethod
    def get_stats(self) -> StoreStats:
        """Return store statistics for monitoring."""
        ...


class UniqueConstraintViolation(StoreError):
    """Raised when an insert collides with another record's unique key."""

    def __init__(self, table: str, index: str, key: IndexKey) -> None:
        super().__init__(
            f"duplicate key {key!r} for unique index {index!r} on table {table!r}"
        )
        self.table = table
        self.index = index
        self.key = key


class TransactionStateError(StoreError):
    """Raised when a transaction is used after commit/abort, or written
    to while read-only."""

    def __init__(self, message: str, txn_id: TransactionId | None = None) -> None:
        super().__init__(message)
        self.txn_id = txn_id


class WriteLockTimeoutError(StoreError):
    """Raised when a write transaction cannot be opened before its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"write lock not acquired within {timeout:g}s")
        self.timeout = timeout
