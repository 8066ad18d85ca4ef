"""
Sale service for registering point-of-sale transactions.

Handles:
- Cart and amount validation before anything is written
- Resolution of the payment breakdown (structured list or legacy method string)
- Server-side verification of courtesy (price-zeroed) lines
- Optional enforcement of total == subtotal - discount and payments == total
- Integration with the register_sale() PostgreSQL function (all-or-nothing)
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from config import Settings, get_settings
from domain.errors import (
    BookNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    InternalError,
    UnauthorizedError,
    ValidationError,
)
from domain.book import MAX_AMOUNT
from domain.payments import PaymentEntry, total_paid
from domain.sale import CartLine
from repositories.sale_repository import register_sale_atomic

logger = logging.getLogger(__name__)

# Tolerance when comparing client-computed amounts.
AMOUNT_EPSILON = Decimal("0.01")
_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class SaleRequest:
    """
    Request to register a sale.

    payments: structured breakdown; None when the client only sent the legacy
    single `legacy_payment_method` string (recorded with amount 0).
    """

    cart: Sequence[CartLine]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    payments: Optional[Sequence[PaymentEntry]] = None
    legacy_payment_method: Optional[str] = None
    buyer_name: Optional[str] = None
    courtesy_password: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ResolvedPayments:
    entries: List[PaymentEntry] = field(default_factory=list)
    legacy: bool = False


def resolve_payments(
    payments: Optional[Sequence[PaymentEntry]],
    legacy_payment_method: Optional[str],
) -> ResolvedPayments:
    """
    Turn the submitted payment information into the list that gets stored.

    - A structured list wins; method names are trimmed and must not be empty,
      amounts must be non-negative and fit the amount columns.
    - Otherwise a legacy method string becomes a single entry with amount 0.
    - Otherwise the sale has no payment entries.
    """

    if payments is not None:
        entries: List[PaymentEntry] = []
        for position, entry in enumerate(payments, start=1):
            method = (entry.method or "").strip()
            if not method:
                raise ValidationError(f"Payment #{position} has no method")
            if not entry.amount.is_finite() or entry.amount < 0:
                raise ValidationError(f"Payment #{position} ({method}) has a negative or invalid amount")
            if entry.amount > MAX_AMOUNT:
                raise ValidationError(f"Payment #{position} ({method}) exceeds {MAX_AMOUNT}")
            entries.append(PaymentEntry(method=method, amount=entry.amount.quantize(_CENTS)))
        return ResolvedPayments(entries=entries, legacy=False)

    if legacy_payment_method and legacy_payment_method.strip():
        return ResolvedPayments(
            entries=[PaymentEntry(method=legacy_payment_method.strip(), amount=Decimal("0.00"))],
            legacy=True,
        )

    return ResolvedPayments()


def verify_admin_password(password: Optional[str], settings: Settings) -> bool:
    """Check a password (login or courtesy) against the shared admin secret."""

    if not settings.admin_password or not password:
        return False
    return hmac.compare_digest(password.strip().encode(), settings.admin_password.encode())


def _check_amounts(request: SaleRequest) -> None:
    for name in ("subtotal", "discount", "total"):
        value = getattr(request, name)
        if not value.is_finite() or value < 0:
            raise ValidationError(f"{name} must be a non-negative amount")
        if value > MAX_AMOUNT:
            raise ValidationError(f"{name} must not exceed {MAX_AMOUNT}")


def _enforce_totals(request: SaleRequest, payments: ResolvedPayments) -> None:
    subtotal, discount, total = request.subtotal, request.discount, request.total

    if discount > subtotal:
        raise ValidationError("discount cannot exceed subtotal")
    if abs((subtotal - discount) - total) > AMOUNT_EPSILON:
        raise ValidationError(
            f"total ({total}) does not match subtotal - discount ({subtotal - discount})"
        )

    prices = [line.recorded_price for line in request.cart]
    if all(price is not None for price in prices):
        cart_subtotal = sum(
            (price * line.quantity for price, line in zip(prices, request.cart)),
            Decimal("0.00"),
        )
        if abs(cart_subtotal - subtotal) > AMOUNT_EPSILON:
            raise ValidationError(
                f"subtotal ({subtotal}) does not match the cart ({cart_subtotal})"
            )

    if payments.legacy:
        return
    if not payments.entries:
        if total != 0:
            raise ValidationError("A sale with a non-zero total needs at least one payment")
        return
    paid = total_paid(payments.entries)
    if abs(paid - total) > AMOUNT_EPSILON:
        raise ValidationError(f"Payments ({paid}) do not add up to the total ({total})")


def register_sale(request: SaleRequest, settings: Optional[Settings] = None) -> int:
    """
    Register a sale: header, line items and stock decrements, all or nothing.

    Process:
    1. Reject an empty cart and malformed amounts (nothing written)
    2. Resolve the payment breakdown
    3. Verify the courtesy password when any line is price-zeroed
    4. Enforce totals (when ENFORCE_SALE_TOTALS is on)
    5. Call register_sale(), which decrements each book's stock only when
       enough units remain and rolls the whole sale back otherwise

    Returns:
        The new sale id

    Raises:
        EmptyCartError / ValidationError: rejected before any mutation
        UnauthorizedError: courtesy lines without the right password
        BookNotFoundError: a cart line references an unknown book
        InsufficientStockError: a line asks for more units than available
        InternalError: unexpected store failure (rolled back)

    Example:
        sale_id = register_sale(SaleRequest(
            cart=[CartLine(book_id=1, quantity=2, unit_price=Decimal("10.00"))],
            payments=[PaymentEntry("Pix", Decimal("20.00"))],
            subtotal=Decimal("20.00"), discount=Decimal("0.00"), total=Decimal("20.00"),
        ))
    """

    settings = settings or get_settings()

    if not request.cart:
        raise EmptyCartError("Cart is empty")
    _check_amounts(request)

    payments = resolve_payments(request.payments, request.legacy_payment_method)

    if any(line.is_courtesy for line in request.cart):
        if not verify_admin_password(request.courtesy_password, settings):
            logger.warning("Courtesy items rejected: wrong or missing password", extra={"kind": "unauthorized"})
            raise UnauthorizedError("Courtesy items require the admin password")

    if settings.enforce_sale_totals:
        _enforce_totals(request, payments)

    buyer_name = (request.buyer_name or "").strip() or None

    result = register_sale_atomic(
        cart=request.cart,
        payments=payments.entries,
        buyer_name=buyer_name,
        subtotal=request.subtotal.quantize(_CENTS),
        discount=request.discount.quantize(_CENTS),
        total=request.total.quantize(_CENTS),
    )

    if result.success and result.sale_id is not None:
        logger.info(
            f"Sale {result.sale_id} registered",
            extra={"sale_id": result.sale_id, "lines": len(request.cart), "total": str(request.total)},
        )
        return result.sale_id

    logger.warning(
        f"Sale rejected: {result.error_message}",
        extra={"kind": result.error_code, "book_id": result.book_id},
    )

    if result.error_code == "INSUFFICIENT_STOCK":
        raise InsufficientStockError(
            result.error_message or f"Insufficient stock for book {result.book_id}",
            book_id=result.book_id,
        )
    if result.error_code == "BOOK_NOT_FOUND":
        raise BookNotFoundError(
            result.error_message or f"Book not found: {result.book_id}",
            book_id=result.book_id,
        )
    if result.error_code == "EMPTY_CART":
        raise EmptyCartError(result.error_message or "Cart is empty")
    raise InternalError("Failed to register sale")


__all__ = [
    "AMOUNT_EPSILON",
    "SaleRequest",
    "ResolvedPayments",
    "resolve_payments",
    "verify_admin_password",
    "register_sale",
]
