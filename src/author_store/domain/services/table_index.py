"""Per-table index maintenance.

A TableIndex holds one table's records as a set of index maps, one per
index in the table schema:

    index name -> { key -> { primary key -> record } }

The primary (``id``) index maps each key to a single-entry bucket, so it
doubles as the table's record set. A multi-valued index stores the same
record under several keys.

Copy-on-write:
    Committed TableIndex instances are shared by every reader that opened
    while they were current, so they are never modified. A write transaction
    works on copy(), which copies the index maps but shares the buckets.
    Buckets themselves are never changed in place: insert() builds a new
    bucket and swaps it in. Scans therefore capture (key, bucket) pairs
    that stay valid regardless of later inserts.

    The cost is that copy() is linear in the number of keys across the
    table's indexes, paid once per table per write transaction. A
    persistent tree would share structure instead; plain dicts are enough
    for tables of thousands of records.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Mapping
from operator import itemgetter
from typing import Any

from author_store.domain.value_objects import (
    PRIMARY_INDEX,
    IndexKey,
    PrimaryKey,
    SchemaError,
    TableSchema,
)
from author_store.ports.inbound.indexed_store import UniqueConstraintViolation

Bucket = Mapping[PrimaryKey, Any]
Group = tuple[IndexKey, Bucket]


class TableIndex:
    """All indexes of one table at one point in time."""

    __slots__ = ("schema", "_entries")

    def __init__(
        self,
        schema: TableSchema,
        entries: dict[str, dict[IndexKey, Bucket]] | None = None,
    ) -> None:
        self.schema = schema
        if entries is None:
            entries = {index.name: {} for index in schema.indexes}
        self._entries = entries

    def __len__(self) -> int:
        return len(self._entries[PRIMARY_INDEX])

    def __repr__(self) -> str:
        return f"TableIndex({self.schema.name!r}, records={len(self)})"

    def copy(self) -> TableIndex:
        """Return a private copy for a write transaction."""
        return TableIndex(
            self.schema,
            {name: dict(entries) for name, entries in self._entries.items()},
        )

    def get_by_primary_key(self, pk: PrimaryKey) -> Any | None:
        bucket = self._entries[PRIMARY_INDEX].get(pk)
        if bucket is None:
            return None
        return bucket[pk]

    def insert(self, record: Any) -> Any | None:
        """Insert or replace a record, updating every index.

        All validation happens before the first index is touched, so a
        failed insert leaves the table unchanged.

        Returns:
            The record previously stored under the same primary key, if any.

        Raises:
            SchemaError: Record type does not match, or a field is unindexable.
            UniqueConstraintViolation: A unique key is held by another record.
        """
        if type(record) is not self.schema.record_type:
            raise SchemaError(
                f"table {self.schema.name!r} holds "
                f"{self.schema.record_type.__name__} records, got {type(record).__name__}"
            )

        keys = self._keys_of(record)
        (pk,) = keys[PRIMARY_INDEX]
        self._check_unique(pk, keys)

        previous = self.get_by_primary_key(pk)
        if previous is not None:
            for name, old_keys in self._keys_of(previous).items():
                for key in old_keys:
                    self._unlink(name, key, pk)

        for name, new_keys in keys.items():
            for key in new_keys:
                self._link(name, key, pk, record)

        return previous

    def scan(self, index: str) -> list[Group]:
        """All (key, bucket) groups of an index in ascending key order."""
        return sorted(self._entries[index].items(), key=itemgetter(0))

    def lookup(self, index: str, key: IndexKey) -> list[Group]:
        """The group stored under exactly key, as a zero- or one-item list."""
        bucket = self._entries[index].get(key)
        return [] if bucket is None else [(key, bucket)]

    def lower_bound(self, index: str, key: IndexKey) -> list[Group]:
        """Groups whose key is >= key, ascending."""
        groups = self.scan(index)
        start = bisect_left([group_key for group_key, _ in groups], key)
        return groups[start:]

    def prefix(self, index: str, prefix: str) -> list[Group]:
        """Groups whose string key starts with prefix, ascending."""
        return [
            (key, bucket)
            for key, bucket in self.lower_bound(index, prefix)
            if key.startswith(prefix)
        ]

    def _keys_of(self, record: Any) -> dict[str, tuple[IndexKey, ...]]:
        return {
            index.name: index.indexer.from_object(record)
            for index in self.schema.indexes
        }

    def _check_unique(self, pk: PrimaryKey, keys: dict[str, tuple[IndexKey, ...]]) -> None:
        for index in self.schema.indexes:
            # Same primary key means replacement, which is always allowed
            if not index.unique or index.name == PRIMARY_INDEX:
                continue
            entries = self._entries[index.name]
            for key in keys[index.name]:
                holders = entries.get(key, {})
                if any(other != pk for other in holders):
                    raise UniqueConstraintViolation(self.schema.name, index.name, key)

    def _link(self, index: str, key: IndexKey, pk: PrimaryKey, record: Any) -> None:
        entries = self._entries[index]
        entries[key] = {**entries.get(key, {}), pk: record}

    def _unlink(self, index: str, key: IndexKey, pk: PrimaryKey) -> None:
        entries = self._entries[index]
        remaining = {other: rec for other, rec in entries[key].items() if other != pk}
        if remaining:
            entries[key] = remaining
        else:
            del entries[key]
