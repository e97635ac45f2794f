"""Transaction-related types and enumerations."""

from __future__ import annotations

from enum import Enum, auto


class TransactionState(Enum):
    """Transaction lifecycle states.

        ACTIVE ──commit()──> COMMITTED
           │
           └──abort()───> ABORTED

    Both terminal states are final: a closed transaction accepts only
    further abort() calls, which do nothing.
    """

    ACTIVE = auto()
    """Transaction is open and can execute operations."""

    COMMITTED = auto()
    """Transaction has committed. Write transactions have published their changes."""

    ABORTED = auto()
    """Transaction has been aborted. Pending changes were discarded."""

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (COMMITTED or ABORTED)."""
        return self in (TransactionState.COMMITTED, TransactionState.ABORTED)

    def is_active(self) -> bool:
        """Check if transaction can still perform operations."""
        return self == TransactionState.ACTIVE


class TransactionMode(Enum):
    """Whether a transaction may mutate the store."""

    READ = "read"
    """Snapshot reader. Never blocks, never sees later commits."""

    WRITE = "write"
    """Exclusive writer. At most one is open at a time."""

    @classmethod
    def from_writable(cls, writable: bool) -> TransactionMode:
        return cls.WRITE if writable else cls.READ
