import logging
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, List, Mapping, Optional

from book import Book
from config import settings
from database import get_db_connection, initialize_database, parse_database_url
from utils.validators import BookValidationError, validate_book

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

BOOK_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")
BOOK_COLUMNS = "id, title, author, genre, year, description, created_at, updated_at"


class CatalogError(Exception):
    pass


class StoreError(CatalogError):
    """The underlying store failed or rejected the operation."""


class InvalidBookIdError(StoreError):
    def __init__(self, book_id: str) -> None:
        super().__init__(f'Cast to id failed for value "{book_id}"')
        self.book_id = book_id


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _check_id(book_id: str) -> str:
    if not isinstance(book_id, str) or not BOOK_ID_PATTERN.match(book_id):
        raise InvalidBookIdError(str(book_id))
    return book_id


class Catalog:
    """Manages the collection of book records and their persistence."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url or settings.database_url
        self.db_file = parse_database_url(self.database_url)
        try:
            initialize_database(self.db_file)
        except (sqlite3.Error, OSError) as exc:
            raise StoreError(str(exc)) from exc

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = get_db_connection(self.db_file)
            yield conn
        except (sqlite3.Error, UnicodeError) as exc:
            logger.error(f"Store operation failed on {self.db_file}: {exc}")
            raise StoreError(str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        """Return every book, most recently created first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {BOOK_COLUMNS} FROM books ORDER BY created_at DESC, seq DESC"
            ).fetchall()
        return [Book.from_dict(dict(row)) for row in rows]

    def find_book(self, book_id: str) -> Optional[Book]:
        _check_id(book_id)
        with self._connect() as conn:
            row = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
        return Book.from_dict(dict(row)) if row else None

    def add_book(self, candidate: Mapping[str, Any]) -> Book:
        """Validate a candidate record and persist it under a new id."""
        result = validate_book(candidate)
        if not result.ok:
            raise BookValidationError(result)

        values = result.values
        now = _utc_timestamp()
        book = Book(id=uuid.uuid4().hex, created_at=now, updated_at=now, **values)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO books ({BOOK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (book.id, book.title, book.author, book.genre, book.year, book.description,
                 book.created_at, book.updated_at),
            )
            conn.commit()
        logger.info(f"Book created: id={book.id} title={book.title!r}")
        return book

    def update_book(self, book_id: str, candidate: Mapping[str, Any]) -> Optional[Book]:
        """Replace every field of a book. Returns None if the id is unknown."""
        _check_id(book_id)
        result = validate_book(candidate)
        if not result.ok:
            raise BookValidationError(result)

        values = result.values
        now = _utc_timestamp()
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE books SET title = ?, author = ?, genre = ?, year = ?, description = ?, updated_at = ? "
                "WHERE id = ?",
                (values["title"], values["author"], values["genre"], values["year"], values["description"],
                 now, book_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
        logger.info(f"Book updated: id={book_id}")
        return Book.from_dict(dict(row))

    def remove_book(self, book_id: str) -> Optional[Book]:
        """Delete a book and return the snapshot taken before deletion."""
        _check_id(book_id)
        with self._connect() as conn:
            row = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
            if row is None:
                return None
            conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            conn.commit()
        logger.info(f"Book deleted: id={book_id}")
        return Book.from_dict(dict(row))

    def count_books(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]

    def ping(self) -> bool:
        """Check that the store answers a trivial query."""
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1")
            return True
        except StoreError:
            return False

    def close(self) -> None:
        """Connections are opened per operation, so there is nothing to release."""
        return None
