from __future__ import annotations

from typing import Any


class Book:
    """Represents a single book record in the store."""

    def __init__(self, id: int, author: str | None = None, title: str | None = None,
                 extra: dict[str, Any] | None = None) -> None:
        self.id = id
        self.author = author
        self.title = title
        # Caller-supplied fields beyond author/title, kept verbatim
        self.extra = dict(extra or {})

    def __str__(self) -> str:
        return f"{self.title} by {self.author} (id: {self.id})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"id": self.id}
        if self.author is not None:
            data["author"] = self.author
        if self.title is not None:
            data["title"] = self.title
        data.update(self.extra)
        return data

    @staticmethod
    def from_dict(data: dict) -> "Book":
        extra = {k: v for k, v in data.items() if k not in ("id", "author", "title")}
        return Book(id=data["id"], author=data.get("author"), title=data.get("title"), extra=extra)

    @staticmethod
    def from_record(book_id: int, record: dict) -> "Book":
        """Build a Book from caller data, forcing ``book_id`` over any id in ``record``."""
        return Book.from_dict({**record, "id": book_id})
