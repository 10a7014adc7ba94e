import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import DateTime, Integer, String, bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from book import Book
from errors import BookNotFound, ServerError

logger = logging.getLogger(__name__)

BOOK_COLUMNS = dict(
    id=Integer,
    isbn=String,
    title=String,
    author=String,
    publisher=String,
    created_at=DateTime,
)

SELECT_BOOKS = text(
    "SELECT id, isbn, title, author, publisher, created_at FROM books"
).columns(**BOOK_COLUMNS)

SELECT_BOOK = text(
    "SELECT id, isbn, title, author, publisher, created_at FROM books WHERE id = :id"
).columns(**BOOK_COLUMNS)

INSERT_BOOK = text(
    "INSERT INTO books (isbn, title, author, publisher, created_at) "
    "VALUES (:isbn, :title, :author, :publisher, :created_at)"
).bindparams(bindparam("created_at", type_=DateTime))

UPDATE_PUBLISHER = text("UPDATE books SET publisher = :publisher WHERE id = :id")

DELETE_BOOK = text("DELETE FROM books WHERE id = :id")


def _row_to_book(row) -> Book:
    try:
        return Book.model_validate(dict(row._mapping))
    except ValidationError as e:
        raise ServerError("Failed to scan row") from e


class Library:
    """Book repository. Every operation is a single statement on the shared engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------- Reads ------------------------- #
    def list_books(self) -> List[Book]:
        """All rows in the database's natural order."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(SELECT_BOOKS).fetchall()
        except SQLAlchemyError as e:
            raise ServerError("Failed to execute the database query") from e
        return [_row_to_book(row) for row in rows]

    def find_book(self, book_id: int) -> Book:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(SELECT_BOOK, {"id": book_id}).first()
        except SQLAlchemyError as e:
            raise ServerError("Failed to execute the database query") from e
        if row is None:
            raise BookNotFound()
        return _row_to_book(row)

    # ------------------------- Writes ------------------------- #
    def add_book(
        self,
        isbn: str,
        title: str,
        author: str,
        publisher: str,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Insert a book and return the id the database assigned to it."""
        params = {
            "isbn": isbn,
            "title": title,
            "author": author,
            "publisher": publisher,
            "created_at": created_at or datetime.now(),
        }
        try:
            with self.engine.begin() as conn:
                result = conn.execute(INSERT_BOOK, params)
                book_id = result.lastrowid
        except SQLAlchemyError as e:
            raise ServerError("Error inserting record") from e

        if book_id is None:
            raise ServerError("Error retrieving last insert ID")
        return book_id

    def update_publisher(self, book_id: int, publisher: str) -> int:
        """Set the publisher of one book. Returns the number of rows affected."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(UPDATE_PUBLISHER, {"publisher": publisher, "id": book_id})
                return result.rowcount
        except SQLAlchemyError as e:
            raise ServerError("Error: Could not update book") from e

    def remove_book(self, book_id: int) -> int:
        """Delete one book by id. Returns the number of rows affected."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(DELETE_BOOK, {"id": book_id})
                return result.rowcount
        except SQLAlchemyError as e:
            raise ServerError("Error deleting record") from e