from __future__ import annotations


class Book:
    """Represents a single book record in the catalog."""

    def __init__(self, id: str, title: str, author: str, genre: str, year: int, description: str | None = None,
                 created_at: str | None = None, updated_at: str | None = None) -> None:
        self.id = id
        self.title = title.strip()
        self.author = author.strip()
        self.genre = genre.strip()
        self.year = int(year)
        self.description = (description or "").strip()
        self.created_at = created_at
        self.updated_at = updated_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.year})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "genre": self.genre,
            "year": self.year,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # Rows from SQLite use snake_case; API payloads use camelCase
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            genre=data["genre"],
            year=data["year"],
            description=data.get("description"),
            created_at=data.get("created_at", data.get("createdAt")),
            updated_at=data.get("updated_at", data.get("updatedAt")),
        )
