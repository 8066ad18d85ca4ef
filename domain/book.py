"""
Domain: Book catalog entries.

Rules implemented here:
- Title is required (and unique in the store).
- Price is a non-negative amount with 2-decimal precision, at most
  MAX_AMOUNT (the NUMERIC(10, 2) columns in db/schema.sql).
- Stock is a non-negative integer.
- Barcode is optional; blank barcodes are stored as NULL so uniqueness only
  applies to real codes.

Stock is decremented exclusively by the sale transaction; this module never
changes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import ValidationError

CENTS = Decimal("0.01")

# Largest value a NUMERIC(10, 2) column holds.
MAX_AMOUNT = Decimal("99999999.99")


def to_money(value: Any, *, name: str = "amount") -> Decimal:
    """
    Convert a user or store supplied amount into a 2-place Decimal.

    Raises:
        ValidationError: if the value is not a finite number or exceeds MAX_AMOUNT
    """

    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a finite number")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{name} must not exceed {MAX_AMOUNT}")
    return amount.quantize(CENTS)


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class BookDraft:
    """Validated payload for creating or replacing a book."""

    title: str
    price: Decimal
    stock: int
    author: Optional[str] = None
    barcode: Optional[str] = None

    def __post_init__(self) -> None:
        title = (self.title or "").strip()
        if not title:
            raise ValidationError("title is required")
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "author", _clean_optional(self.author))
        object.__setattr__(self, "barcode", _clean_optional(self.barcode))

        price = to_money(self.price, name="price")
        if price < 0:
            raise ValidationError("price must be non-negative")
        object.__setattr__(self, "price", price)

        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValidationError("stock must be an integer")
        if self.stock < 0:
            raise ValidationError("stock must be non-negative")

    def to_row(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "price": str(self.price),
            "stock": self.stock,
            "barcode": self.barcode,
        }


@dataclass(frozen=True, slots=True)
class Book:
    """A persisted catalog entry."""

    book_id: int
    title: str
    price: Decimal
    stock: int
    author: Optional[str] = None
    barcode: Optional[str] = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
