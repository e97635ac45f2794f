"""Record types held by the store.

Records are frozen: once a record is stored, its fields cannot change
underneath the indexes that point at it. To change a record, insert a new
instance with the same ``id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from author_store.domain.value_objects import UINT64_MAX


def _check_id(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"id must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"id must be non-negative, got {value}")
    if value > UINT64_MAX:
        raise ValueError(f"id must fit in 64 bits, got {value}")


def _check_str(name: str, value: Any) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {type(value).__name__}")


@dataclass(frozen=True, slots=True)
class Author:
    """An author with the subjects they write about.

    Attributes:
        id: Primary key.
        name: Display name.
        subjects: Subjects in the order given; each is indexed separately.

    Example:
        >>> Author(1, "Ada", ["math", "cs"]).subjects
        ('math', 'cs')
    """

    id: int
    name: str
    subjects: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        _check_id(self.id)
        _check_str("name", self.name)
        if isinstance(self.subjects, (str, bytes)):
            raise ValueError(
                f"subjects must be a sequence of strings, got {type(self.subjects).__name__}"
            )
        # Accept any iterable of strings but store an immutable tuple
        object.__setattr__(self, "subjects", tuple(self.subjects))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "subjects": list(self.subjects)}


@dataclass(frozen=True, slots=True)
class Article:
    """An article. ``author`` is the author's name copied at write time,
    not a reference to an Author record."""

    id: int
    title: str
    content: str
    author: str

    def __post_init__(self) -> None:
        _check_id(self.id)
        for name in ("title", "content", "author"):
            _check_str(name, getattr(self, name))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author,
        }
