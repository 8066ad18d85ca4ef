"""
Book repository (persistence).

This module provides *only* persistence operations for the Book catalog. It
never changes stock on behalf of a sale; the sale transaction owns stock
decrements (see repositories.sale_repository).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.book import Book, BookDraft
from domain.errors import BookNotFoundError, ConflictError
from repositories.client import execute_paged, execute_query, get_supabase

# Supabase table name for the catalog.
# Keep this aligned with db/schema.sql.
_BOOKS_TABLE: str = "books"


def _row_to_book(row: Mapping[str, Any]) -> Book:
    """Convert a Supabase row into a Book."""

    return Book(
        book_id=int(row["id"]),
        title=str(row["title"]),
        author=row.get("author"),
        price=Decimal(str(row.get("price", "0"))).quantize(Decimal("0.01")),
        stock=int(row.get("stock", 0)),
        barcode=row.get("barcode"),
    )


def list_books() -> List[Book]:
    """Retrieve the whole catalog ordered by title."""

    rows = execute_paged(
        lambda: get_supabase().table(_BOOKS_TABLE).select("*").order("title").order("id"),
        action="list books",
    )
    return [_row_to_book(row) for row in rows]


def get_book(book_id: int) -> Book:
    """
    Retrieve a single book.

    Raises:
        BookNotFoundError: no book has this id
    """

    rows = execute_query(
        get_supabase().table(_BOOKS_TABLE).select("*").eq("id", book_id).limit(1),
        action="get book",
    )
    if not rows:
        raise BookNotFoundError(f"Book not found: {book_id}", book_id=book_id)
    return _row_to_book(rows[0])


def get_book_by_barcode(barcode: str) -> Book:
    """Retrieve a book by its barcode (used by the scanner at checkout)."""

    code = barcode.strip()
    rows = execute_query(
        get_supabase().table(_BOOKS_TABLE).select("*").eq("barcode", code).limit(1),
        action="get book by barcode",
    )
    if not rows:
        raise BookNotFoundError(f"No book with barcode {code!r}")
    return _row_to_book(rows[0])


def get_book_titles() -> Dict[int, str]:
    """Map of book id -> title, for reports."""

    return {book.book_id: book.title for book in list_books()}


def find_book_by_title(title: str) -> Optional[Book]:
    rows = execute_query(
        get_supabase().table(_BOOKS_TABLE).select("*").eq("title", title.strip()).limit(1),
        action="find book by title",
    )
    return _row_to_book(rows[0]) if rows else None


def create_book(draft: BookDraft) -> Book:
    """
    Insert a new book.

    Raises:
        ConflictError: title or barcode already used by another book
    """

    try:
        rows = execute_query(
            get_supabase().table(_BOOKS_TABLE).insert(draft.to_row()),
            action="create book",
        )
    except ConflictError:
        raise ConflictError(f"A book with this title or barcode already exists: {draft.title!r}") from None
    return _row_to_book(rows[0])


def update_book(book_id: int, draft: BookDraft) -> Book:
    """Replace all editable fields of a book."""

    try:
        rows = execute_query(
            get_supabase().table(_BOOKS_TABLE).update(draft.to_row()).eq("id", book_id),
            action="update book",
        )
    except ConflictError:
        raise ConflictError(
            f"Another book already uses this title or barcode: {draft.title!r}",
            book_id=book_id,
        ) from None
    if not rows:
        raise BookNotFoundError(f"Book not found: {book_id}", book_id=book_id)
    return _row_to_book(rows[0])


def update_price_by_title(title: str, price: Decimal) -> int:
    """Set the price of the book(s) with this title; returns the number of rows updated."""

    rows = execute_query(
        get_supabase().table(_BOOKS_TABLE).update({"price": str(price)}).eq("title", title.strip()),
        action="update book price",
    )
    return len(rows)


def delete_book(book_id: int) -> None:
    """
    Delete a book.

    Raises:
        BookNotFoundError: no book has this id
        ConflictError: the book is referenced by recorded sales (row is kept)
    """

    try:
        rows = execute_query(
            get_supabase().table(_BOOKS_TABLE).delete().eq("id", book_id),
            action="delete book",
        )
    except ConflictError:
        raise ConflictError(
            "Cannot delete this book because it already has recorded sales.",
            book_id=book_id,
        ) from None
    if not rows:
        raise BookNotFoundError(f"Book not found: {book_id}", book_id=book_id)


__all__ = [
    "list_books",
    "get_book",
    "get_book_by_barcode",
    "get_book_titles",
    "find_book_by_title",
    "create_book",
    "update_book",
    "update_price_by_title",
    "delete_book",
]
