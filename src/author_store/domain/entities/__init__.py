"""Domain entities - the record types stored in tables.

Exports:
    - Author: Author record (id, name, subjects)
    - Article: Article record (id, title, content, author)
"""

from author_store.domain.entities.records import Article, Author

__all__ = [
    "Article",
    "Author",
]
