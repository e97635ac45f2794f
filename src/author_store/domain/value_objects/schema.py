"""Schema definitions: tables, indexes and key extraction.

A schema is built once at startup and never changes. Each table names the
record type it holds and the indexes maintained over it; each index owns an
*indexer* that turns a record into zero or more keys, and turns query
arguments into a key using the same rules.

Indexers:
    - UintFieldIndex: one non-negative integer key per record
    - StringFieldIndex: one string key per record
    - StringSliceFieldIndex: one key per distinct element of a string sequence

Example:
    >>> schema = DBSchema(tables=(
    ...     TableSchema(
    ...         name="author",
    ...         record_type=Author,
    ...         indexes=(
    ...             IndexSchema("id", UintFieldIndex("id"), unique=True),
    ...             IndexSchema("subjects", StringSliceFieldIndex("subjects")),
    ...         ),
    ...     ),
    ... ))
    >>> schema.table("author").index("subjects").indexer.from_object(ada)
    ('math', 'cs')
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from author_store.domain.value_objects.identifiers import PRIMARY_INDEX, UINT64_MAX, IndexKey


class StoreError(Exception):
    """Base class for all errors raised by the indexed store."""


class SchemaError(StoreError):
    """Unknown table or index, invalid schema, or a value the schema rejects.

    Always a programming error; retrying the same call fails the same way.
    """


@dataclass(frozen=True)
class FieldIndexer(ABC):
    """Extracts index keys from a single record field."""

    field: str

    #: True if one record may produce several keys
    multi = False

    #: True if keys are strings and support prefix scans
    supports_prefix = False

    def from_object(self, record: Any) -> tuple[IndexKey, ...]:
        """Return the keys this record is stored under.

        Raises:
            SchemaError: If the field is missing or holds an unindexable value.
        """
        try:
            value = getattr(record, self.field)
        except AttributeError:
            raise SchemaError(
                f"{type(record).__name__} has no field {self.field!r}"
            ) from None
        return self._keys_for(value)

    def from_args(self, *args: Any) -> IndexKey:
        """Convert query arguments into a key.

        Raises:
            SchemaError: If not exactly one argument is given or it is invalid.
        """
        if len(args) != 1:
            raise SchemaError(
                f"index on {self.field!r} takes exactly one argument, got {len(args)}"
            )
        return self._convert(args[0])

    def _keys_for(self, value: Any) -> tuple[IndexKey, ...]:
        return (self._convert(value),)

    @abstractmethod
    def _convert(self, value: Any) -> IndexKey:
        ...


@dataclass(frozen=True)
class UintFieldIndex(FieldIndexer):
    """Index over a non-negative integer field no larger than UINT64_MAX."""

    def _convert(self, value: Any) -> IndexKey:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SchemaError(
                f"field {self.field!r} must be an unsigned integer, got {type(value).__name__}"
            )
        if value < 0:
            raise SchemaError(f"field {self.field!r} must be non-negative, got {value}")
        if value > UINT64_MAX:
            raise SchemaError(f"field {self.field!r} must fit in 64 bits, got {value}")
        return value


@dataclass(frozen=True)
class StringFieldIndex(FieldIndexer):
    """Index over a string field, optionally case-folded."""

    lowercase: bool = False

    supports_prefix = True

    def _convert(self, value: Any) -> IndexKey:
        if not isinstance(value, str):
            raise SchemaError(
                f"field {self.field!r} must be a string, got {type(value).__name__}"
            )
        return value.lower() if self.lowercase else value


@dataclass(frozen=True)
class StringSliceFieldIndex(StringFieldIndex):
    """Index over a sequence of strings; one key per distinct element.

    A record whose sequence is empty has no entry in the index. Query
    arguments are single strings.
    """

    multi = True

    def _keys_for(self, value: Any) -> tuple[IndexKey, ...]:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise SchemaError(
                f"field {self.field!r} must be a sequence of strings, got {type(value).__name__}"
            )
        # dict preserves first-seen order while dropping repeats
        return tuple(dict.fromkeys(self._convert(item) for item in value))


@dataclass(frozen=True)
class IndexSchema:
    """A named index within a table."""

    name: str
    indexer: FieldIndexer
    unique: bool = False


@dataclass(frozen=True)
class TableSchema:
    """A named table holding records of exactly one type."""

    name: str
    record_type: type
    indexes: tuple[IndexSchema, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "indexes", tuple(self.indexes))

    def index(self, name: str) -> IndexSchema:
        """Look up an index by name.

        Raises:
            SchemaError: If the table has no such index.
        """
        for index in self.indexes:
            if index.name == name:
                return index
        raise SchemaError(f"table {self.name!r} has no index {name!r}")

    @property
    def primary(self) -> IndexSchema:
        return self.index(PRIMARY_INDEX)

    def validate(self) -> None:
        """Check the table definition.

        Raises:
            SchemaError: On an empty name, no indexes, duplicate index
                names, a bad ``id`` index, or an index over a field the
                record type does not have.
        """
        if not self.name:
            raise SchemaError("table name must not be empty")
        if not self.indexes:
            raise SchemaError(f"table {self.name!r} must define at least one index")
        if not dataclasses.is_dataclass(self.record_type):
            raise SchemaError(
                f"table {self.name!r} record type {self.record_type!r} is not a dataclass"
            )

        field_names = {f.name for f in dataclasses.fields(self.record_type)}
        seen: set[str] = set()
        for index in self.indexes:
            if not index.name:
                raise SchemaError(f"table {self.name!r} has an index with no name")
            if index.name in seen:
                raise SchemaError(f"table {self.name!r} has duplicate index {index.name!r}")
            seen.add(index.name)
            if index.indexer.field not in field_names:
                raise SchemaError(
                    f"index {index.name!r} on table {self.name!r} references unknown "
                    f"field {index.indexer.field!r} of {self.record_type.__name__}"
                )

        if PRIMARY_INDEX not in seen:
            raise SchemaError(f"table {self.name!r} must have an {PRIMARY_INDEX!r} index")
        primary = self.primary
        if not primary.unique:
            raise SchemaError(f"{PRIMARY_INDEX!r} index on table {self.name!r} must be unique")
        if primary.indexer.multi:
            raise SchemaError(
                f"{PRIMARY_INDEX!r} index on table {self.name!r} must be single-valued"
            )


@dataclass(frozen=True)
class DBSchema:
    """The complete, immutable set of tables. Validated on construction."""

    tables: tuple[TableSchema, ...]
    _by_name: Mapping[str, TableSchema] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        tables = tuple(self.tables)
        if not tables:
            raise SchemaError("schema must define at least one table")

        by_name: dict[str, TableSchema] = {}
        for table in tables:
            table.validate()
            if table.name in by_name:
                raise SchemaError(f"duplicate table {table.name!r}")
            by_name[table.name] = table

        object.__setattr__(self, "tables", tables)
        object.__setattr__(self, "_by_name", MappingProxyType(by_name))

    def table(self, name: str) -> TableSchema:
        """Look up a table by name.

        Raises:
            SchemaError: If the schema has no such table.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise SchemaError(f"unknown table {name!r}") from None

    @property
    def table_names(self) -> tuple[str, ...]:
        return tuple(self._by_name)
