"""Unit tests for record entities."""

from __future__ import annotations

import dataclasses

import pytest

from author_store.domain.entities import Article, Author


@pytest.mark.unit
class TestAuthor:
    """Tests for the Author record."""

    def test_subjects_stored_as_tuple(self) -> None:
        author = Author(1, "Ada", ["math", "cs"])

        assert author.subjects == ("math", "cs")

    def test_default_subjects_empty(self) -> None:
        assert Author(1, "Ada").subjects == ()

    def test_equal_when_fields_equal(self) -> None:
        assert Author(1, "Ada", ["cs"]) == Author(1, "Ada", ("cs",))

    def test_frozen(self) -> None:
        """Stored records cannot be changed behind the indexes."""
        author = Author(1, "Ada", ["cs"])

        with pytest.raises(dataclasses.FrozenInstanceError):
            author.name = "Grace"  # type: ignore[misc]

    @pytest.mark.parametrize("bad_id", [-1, 1.5, "1", True])
    def test_invalid_id(self, bad_id: object) -> None:
        with pytest.raises(ValueError, match="id"):
            Author(bad_id, "Ada")  # type: ignore[arg-type]

    def test_id_upper_bound(self) -> None:
        assert Author(2**64 - 1, "Max").id == 2**64 - 1
        with pytest.raises(ValueError, match="64 bits"):
            Author(2**64, "Ada")

    @pytest.mark.parametrize("subjects", ["math", b"math"])
    def test_bare_string_subjects_rejected(self, subjects: object) -> None:
        """A single string is not split into one subject per character."""
        with pytest.raises(ValueError, match="sequence of strings"):
            Author(1, "Ada", subjects)  # type: ignore[arg-type]

    @pytest.mark.parametrize("name", [12345, None, b"Ada"])
    def test_name_must_be_string(self, name: object) -> None:
        with pytest.raises(ValueError, match="name must be a string"):
            Author(1, name)  # type: ignore[arg-type]

    def test_to_dict(self) -> None:
        assert Author(2, "Grace", ("cs",)).to_dict() == {
            "id": 2,
            "name": "Grace",
            "subjects": ["cs"],
        }


@pytest.mark.unit
class TestArticle:
    """Tests for the Article record."""

    def test_to_dict(self) -> None:
        article = Article(1, "Notes", "On the engine", "Ada")

        assert article.to_dict() == {
            "id": 1,
            "title": "Notes",
            "content": "On the engine",
            "author": "Ada",
        }

    def test_negative_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            Article(-5, "t", "c", "a")

    @pytest.mark.parametrize(
        ("fields", "bad"),
        [
            ((1, 7, "c", "a"), "title"),
            ((1, "t", None, "a"), "content"),
            ((1, "t", "c", ["Ada"]), "author"),
        ],
    )
    def test_text_fields_must_be_strings(self, fields: tuple, bad: str) -> None:
        with pytest.raises(ValueError, match=f"{bad} must be a string"):
            Article(*fields)

    def test_id_upper_bound(self) -> None:
        with pytest.raises(ValueError, match="64 bits"):
            Article(2**64, "t", "c", "a")
