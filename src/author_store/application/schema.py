"""The service's table definitions."""

from __future__ import annotations

from author_store.domain.entities import Article, Author
from author_store.domain.value_objects import (
    DBSchema,
    IndexSchema,
    StringFieldIndex,
    StringSliceFieldIndex,
    TableSchema,
    UintFieldIndex,
)

AUTHOR_TABLE = "author"
ARTICLE_TABLE = "article"


def build_schema() -> DBSchema:
    """Build the process-wide schema.

    Tables:
        author: id (unique), subjects (one entry per subject)
        article: id (unique), title, content, author

    Raises:
        SchemaError: If the definition is invalid. Callers should treat this
            as fatal at startup.
    """
    return DBSchema(
        tables=(
            TableSchema(
                name=AUTHOR_TABLE,
                record_type=Author,
                indexes=(
                    IndexSchema("id", UintFieldIndex("id"), unique=True),
                    IndexSchema("subjects", StringSliceFieldIndex("subjects")),
                ),
            ),
            TableSchema(
                name=ARTICLE_TABLE,
                record_type=Article,
                indexes=(
                    IndexSchema("id", UintFieldIndex("id"), unique=True),
                    IndexSchema("title", StringFieldIndex("title")),
                    IndexSchema("content", StringFieldIndex("content")),
                    IndexSchema("author", StringFieldIndex("author")),
                ),
            ),
        )
    )
