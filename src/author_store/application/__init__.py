"""Application layer for the author store.

The application layer orchestrates domain logic to fulfill use cases.

Exports:
    - build_schema: The service's table definitions
    - AuthorService: Author and article use cases
    - AUTHOR_TABLE, ARTICLE_TABLE: Table names
"""

from author_store.application.author_service import AuthorService
from author_store.application.schema import ARTICLE_TABLE, AUTHOR_TABLE, build_schema

__all__ = [
    "AuthorService",
    "build_schema",
    "AUTHOR_TABLE",
    "ARTICLE_TABLE",
]
