"""Value objects for the indexed store domain.

Value objects are immutable types that represent domain concepts.

Exports:
    Identifiers:
        - TransactionId, PrimaryKey, IndexKey
        - PRIMARY_INDEX: Name of the mandatory unique index
        - UINT64_MAX: Upper bound for unsigned integer keys

    Transaction Types:
        - TransactionState: ACTIVE, COMMITTED, ABORTED
        - TransactionMode: READ or WRITE

    Schema:
        - DBSchema, TableSchema, IndexSchema
        - UintFieldIndex, StringFieldIndex, StringSliceFieldIndex
        - StoreError, SchemaError
"""

from author_store.domain.value_objects.identifiers import (
    PRIMARY_INDEX,
    UINT64_MAX,
    IndexKey,
    PrimaryKey,
    TransactionId,
)
from author_store.domain.value_objects.schema import (
    DBSchema,
    FieldIndexer,
    IndexSchema,
    SchemaError,
    StoreError,
    StringFieldIndex,
    StringSliceFieldIndex,
    TableSchema,
    UintFieldIndex,
)
from author_store.domain.value_objects.transaction_types import (
    TransactionMode,
    TransactionState,
)

__all__ = [
    # Identifiers
    "TransactionId",
    "PrimaryKey",
    "IndexKey",
    "PRIMARY_INDEX",
    "UINT64_MAX",
    # Transaction types
    "TransactionState",
    "TransactionMode",
    # Schema
    "DBSchema",
    "TableSchema",
    "IndexSchema",
    "FieldIndexer",
    "UintFieldIndex",
    "StringFieldIndex",
    "StringSliceFieldIndex",
    "StoreError",
    "SchemaError",
]
