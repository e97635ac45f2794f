"""Inbound ports - API contracts for the author store.

Inbound ports define the interfaces that the request layer uses to
interact with the indexed store.
"""

from author_store.ports.inbound.indexed_store import (
    Store,
    StoreStats,
    Transaction,
    TransactionStateError,
    UniqueConstraintViolation,
    WriteLockTimeoutError,
)

__all__ = [
    "Store",
    "StoreStats",
    "Transaction",
    "TransactionStateError",
    "UniqueConstraintViolation",
    "WriteLockTimeoutError",
]
