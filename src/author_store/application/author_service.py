"""Author and article use cases over the indexed store.

Each operation opens exactly one transaction and releases it on every exit
path, including exceptions.
"""

from __future__ import annotations

from author_store.application.schema import ARTICLE_TABLE, AUTHOR_TABLE
from author_store.domain.entities import Article, Author
from author_store.infrastructure.logging import get_logger
from author_store.ports.inbound import Store

logger = get_logger(__name__)


class AuthorService:
    """Reads and writes authors and articles.

    Store errors propagate unchanged to the caller.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def save_author(self, author: Author) -> Author:
        """Insert or replace an author by id and return the stored record."""
        with self._store.write() as txn:
            self._store.insert(txn, AUTHOR_TABLE, author)
            self._store.commit(txn)
        logger.info("author_saved", author_id=author.id, subjects=len(author.subjects))
        return author

    def list_authors(self) -> list[Author]:
        """All authors in ascending id order."""
        with self._store.read() as txn:
            return list(self._store.get(txn, AUTHOR_TABLE, "id"))

    def authors_by_subject(self, subject: str) -> list[Author]:
        """Authors whose subjects include subject, in ascending id order."""
        with self._store.read() as txn:
            return list(self._store.get(txn, AUTHOR_TABLE, "subjects", subject))

    def get_author(self, author_id: int) -> Author | None:
        with self._store.read() as txn:
            return self._store.first(txn, AUTHOR_TABLE, "id", author_id)

    def save_article(self, article: Article) -> Article:
        """Insert or replace an article by id and return the stored record."""
        with self._store.write() as txn:
            self._store.insert(txn, ARTICLE_TABLE, article)
            self._store.commit(txn)
        logger.info("article_saved", article_id=article.id)
        return article

    def list_articles(self) -> list[Article]:
        with self._store.read() as txn:
            return list(self._store.get(txn, ARTICLE_TABLE, "id"))

    def articles_by_author(self, name: str) -> list[Article]:
        """Articles whose author field equals name exactly."""
        with self._store.read() as txn:
            return list(self._store.get(txn, ARTICLE_TABLE, "author", name))
