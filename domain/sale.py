"""
Domain: Sales and their line items.

Rules captured here:
- A sale and its line items are created together, atomically, and are
  immutable afterwards.
- Each line item records the unit price at sale time, decoupling historical
  revenue from later catalog price changes.
- A sale whose total is 0 is a courtesy sale.
- The stored payment breakdown may be structured or legacy text; it is kept
  raw here and normalized at read time (see domain.payments).

All timestamps must be passed explicitly and be UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from .book import MAX_AMOUNT
from .errors import ValidationError
from .payments import PaymentEntry, normalize_payments
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One (book, quantity) pair submitted for a sale.

    unit_price is the price the client reported for the line; when omitted the
    catalog price is captured inside the sale transaction. Courtesy lines are
    always recorded at price 0, and so is a line whose reported price is 0;
    both count as given away.
    """

    book_id: int
    quantity: int
    unit_price: Optional[Decimal] = None
    courtesy: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValidationError(
                f"quantity must be a positive integer (book {self.book_id})",
                book_id=self.book_id,
            )
        if self.unit_price is not None:
            if not self.unit_price.is_finite() or self.unit_price < 0:
                raise ValidationError(
                    f"unit_price must be non-negative (book {self.book_id})",
                    book_id=self.book_id,
                )
            if self.unit_price > MAX_AMOUNT:
                raise ValidationError(
                    f"unit_price must not exceed {MAX_AMOUNT} (book {self.book_id})",
                    book_id=self.book_id,
                )

    @property
    def recorded_price(self) -> Optional[Decimal]:
        """Price to record for this line (None means: use the catalog price)."""

        if self.courtesy:
            return Decimal("0.00")
        return self.unit_price

    @property
    def is_courtesy(self) -> bool:
        """True when this line is recorded at price 0, flagged or not."""

        price = self.recorded_price
        return price is not None and price == 0


@dataclass(frozen=True, slots=True)
class SaleLineItem:
    """Immutable record of one book sold within a sale."""

    sale_id: int
    book_id: int
    quantity: int
    unit_price: Decimal
    title: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable record of a committed sale.

    payment_data holds the value exactly as stored (list, JSON text or legacy
    free text).
    """

    sale_id: int
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    sold_at: datetime
    buyer_name: Optional[str] = None
    payment_data: Any = None
    items: Tuple[SaleLineItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        require_utc_timestamp("sold_at", self.sold_at)

    @property
    def is_courtesy(self) -> bool:
        return self.total == 0

    @property
    def books_sold(self) -> int:
        return sum(item.quantity for item in self.items)

    def payments(self) -> List[PaymentEntry]:
        """Canonical payment breakdown for reporting."""
        return normalize_payments(self.payment_data)


__all__ = ["CartLine", "SaleLineItem", "SaleRecord"]
