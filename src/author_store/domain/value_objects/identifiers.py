"""Identifiers and key types used by the indexed store."""

from __future__ import annotations

from typing import NewType, Union

TransactionId = NewType("TransactionId", int)
"""Unique identifier for a transaction. Monotonically increasing per store."""

IndexKey = Union[int, str]
"""A single key emitted by an indexer. Keys within one index share a type."""

PrimaryKey = IndexKey
"""Value of a record's ``id`` index; identifies the record within its table."""

PRIMARY_INDEX = "id"
"""Every table must define a unique, single-valued index with this name."""

UINT64_MAX = 2**64 - 1
"""Largest value an unsigned integer index accepts; ids must fit 64 bits."""
