"""
Domain: error taxonomy.

Every failure the core reports to a caller is a `BookstoreError` carrying a
machine-readable `kind`, the HTTP status the API layer should use, and (when a
specific book is to blame) the offending `book_id`.
"""

from __future__ import annotations

from typing import Optional


class BookstoreError(Exception):
    """Base class for errors surfaced to API callers."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str, *, book_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.book_id = book_id


class ValidationError(BookstoreError):
    """Malformed input, rejected before any mutation."""

    kind = "validation_error"
    status_code = 400


class EmptyCartError(ValidationError):
    kind = "empty_cart"


class UnauthorizedError(BookstoreError):
    """Missing or wrong shared secret."""

    kind = "unauthorized"
    status_code = 401


class NotFoundError(BookstoreError):
    kind = "not_found"
    status_code = 404


class BookNotFoundError(NotFoundError):
    kind = "book_not_found"


class SaleNotFoundError(NotFoundError):
    kind = "sale_not_found"


class ConflictError(BookstoreError):
    """The request contradicts stored state (duplicates, referenced rows)."""

    kind = "conflict"
    status_code = 409


class InsufficientStockError(ConflictError):
    """A cart line asked for more units than the book has in stock."""

    kind = "insufficient_stock"


class InternalError(BookstoreError):
    """Unexpected store failure; the transaction was rolled back."""

    kind = "internal_error"
    status_code = 500


__all__ = [
    "BookstoreError",
    "ValidationError",
    "EmptyCartError",
    "UnauthorizedError",
    "NotFoundError",
    "BookNotFoundError",
    "SaleNotFoundError",
    "ConflictError",
    "InsufficientStockError",
    "InternalError",
]
