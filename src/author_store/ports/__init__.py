"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts. The store
is a leaf: it has inbound ports only and no outbound dependencies.
"""

from author_store.ports.inbound import (
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
