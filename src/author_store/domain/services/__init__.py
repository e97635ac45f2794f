"""Domain services for the indexed store.

Services implement the store's behaviour on top of the schema value
objects: per-table index maintenance and transactional access.
"""

from author_store.domain.services.indexed_store import IndexedStore, ResultIterator
from author_store.domain.services.table_index import TableIndex

__all__ = [
    "IndexedStore",
    "ResultIterator",
    "TableIndex",
]
