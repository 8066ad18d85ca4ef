"""
Tests for `services/sale_service.py`.

Runs against the in-memory database (tests/fake_supabase.py), whose
register_sale() emulation applies the same conditional stock decrement and
all-or-nothing rollback as db/schema.sql.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from decimal import Decimal

import pytest

from domain.errors import (
    BookNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    UnauthorizedError,
    ValidationError,
)
from domain.payments import PaymentEntry
from domain.sale import CartLine
from repositories.sale_repository import get_sale
from services.sale_service import SaleRequest, register_sale, resolve_payments, verify_admin_password


def _request(cart, total, payments=None, **extra) -> SaleRequest:
    total = Decimal(total)
    if payments is None:
        payments = [PaymentEntry("Pix", total)]
    return SaleRequest(
        cart=cart,
        subtotal=Decimal(extra.pop("subtotal", total)),
        discount=Decimal(extra.pop("discount", "0.00")),
        total=total,
        payments=payments,
        **extra,
    )


def test_sale_decrements_stock_and_records_price(fake_db, settings) -> None:
    book = fake_db.add_book("Dom Casmurro", price="10.00", stock=5)

    sale_id = register_sale(_request([CartLine(book_id=book["id"], quantity=2)], "20.00"), settings)

    assert fake_db.book(book["id"])["stock"] == 3
    sale = get_sale(sale_id)
    assert len(sale.items) == 1
    assert sale.items[0].quantity == 2
    assert sale.items[0].unit_price == Decimal("10.00")
    assert sale.total == Decimal("20.00")


def test_cart_unit_price_is_recorded(fake_db, settings) -> None:
    book = fake_db.add_book("Vidas Secas", price="50.00", stock=5)
    line = CartLine(book_id=book["id"], quantity=1, unit_price=Decimal("45.00"))

    sale_id = register_sale(_request([line], "45.00"), settings)

    assert get_sale(sale_id).items[0].unit_price == Decimal("45.00")


def test_insufficient_stock_changes_nothing(fake_db, settings) -> None:
    plenty = fake_db.add_book("A", price="10.00", stock=5)
    scarce = fake_db.add_book("B", price="10.00", stock=1)
    cart = [CartLine(book_id=plenty["id"], quantity=2), CartLine(book_id=scarce["id"], quantity=2)]

    with pytest.raises(InsufficientStockError) as exc_info:
        register_sale(_request(cart, "40.00"), settings)

    assert exc_info.value.book_id == scarce["id"]
    assert fake_db.book(plenty["id"])["stock"] == 5
    assert fake_db.book(scarce["id"])["stock"] == 1
    assert fake_db.tables["sales"] == []
    assert fake_db.tables["sale_items"] == []


def test_unknown_book_changes_nothing(fake_db, settings) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)
    cart = [CartLine(book_id=book["id"], quantity=1), CartLine(book_id=999, quantity=1)]

    with pytest.raises(BookNotFoundError) as exc_info:
        register_sale(_request(cart, "20.00"), settings)

    assert exc_info.value.book_id == 999
    assert fake_db.book(book["id"])["stock"] == 5
    assert fake_db.tables["sales"] == []


def test_empty_cart_is_rejected_before_any_call(fake_db, settings) -> None:
    with pytest.raises(EmptyCartError):
        register_sale(_request([], "0.00", payments=[]), settings)

    assert fake_db.rpc_calls == []


def test_competing_sales_never_oversell(fake_db, settings) -> None:
    book = fake_db.add_book("Last copies", price="10.00", stock=5)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def buy() -> None:
        try:
            register_sale(_request([CartLine(book_id=book["id"], quantity=2)], "20.00"), settings)
            result = "ok"
        except InsufficientStockError:
            result = "rejected"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=buy) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("ok") == 2
    assert outcomes.count("rejected") == 4
    assert fake_db.book(book["id"])["stock"] == 1
    assert len(fake_db.tables["sales"]) == 2


def test_courtesy_requires_password(fake_db, settings) -> None:
    book = fake_db.add_book("Gift", price="30.00", stock=2)
    line = CartLine(book_id=book["id"], quantity=1, unit_price=Decimal("30.00"), courtesy=True)

    with pytest.raises(UnauthorizedError):
        register_sale(_request([line], "0.00", payments=[]), settings)
    with pytest.raises(UnauthorizedError):
        register_sale(_request([line], "0.00", payments=[], courtesy_password="wrong"), settings)

    assert fake_db.book(book["id"])["stock"] == 2


def test_courtesy_sale_with_password(fake_db, settings) -> None:
    book = fake_db.add_book("Gift", price="30.00", stock=2)
    line = CartLine(book_id=book["id"], quantity=1, unit_price=Decimal("30.00"), courtesy=True)

    sale_id = register_sale(
        _request([line], "0.00", payments=[], courtesy_password=settings.admin_password), settings
    )

    sale = get_sale(sale_id)
    assert sale.is_courtesy
    assert sale.items[0].unit_price == Decimal("0.00")
    assert fake_db.book(book["id"])["stock"] == 1


def test_zero_price_line_is_a_courtesy_line(fake_db, settings) -> None:
    book = fake_db.add_book("Gift", price="30.00", stock=2)
    line = CartLine(book_id=book["id"], quantity=1, unit_price=Decimal("0.00"))

    with pytest.raises(UnauthorizedError):
        register_sale(_request([line], "0.00", payments=[]), settings)

    assert fake_db.book(book["id"])["stock"] == 2
    assert fake_db.rpc_calls == []

    sale_id = register_sale(
        _request([line], "0.00", payments=[], courtesy_password=settings.admin_password), settings
    )
    assert get_sale(sale_id).is_courtesy


@pytest.mark.parametrize("field", ["subtotal", "total"])
def test_amounts_beyond_the_columns_are_rejected(fake_db, settings, field) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)
    request = _request([CartLine(book_id=book["id"], quantity=1)], "10.00")

    with pytest.raises(ValidationError):
        register_sale(replace(request, **{field: Decimal("1e30")}), settings)

    assert fake_db.rpc_calls == []
    assert fake_db.book(book["id"])["stock"] == 5


def test_total_must_match_subtotal_minus_discount(fake_db, settings) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)
    line = CartLine(book_id=book["id"], quantity=1, unit_price=Decimal("10.00"))

    with pytest.raises(ValidationError):
        register_sale(_request([line], "9.00", subtotal="10.00", discount="0.00"), settings)

    sale_id = register_sale(_request([line], "8.00", subtotal="10.00", discount="2.00"), settings)
    assert get_sale(sale_id).discount == Decimal("2.00")


def test_payments_must_add_up_to_total(fake_db, settings) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)
    line = CartLine(book_id=book["id"], quantity=2)

    with pytest.raises(ValidationError):
        register_sale(_request([line], "20.00", payments=[PaymentEntry("Pix", Decimal("15.00"))]), settings)

    assert fake_db.book(book["id"])["stock"] == 5


def test_discount_cannot_exceed_subtotal(fake_db, settings) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)

    with pytest.raises(ValidationError):
        register_sale(
            _request([CartLine(book_id=book["id"], quantity=1)], "0.00", subtotal="10.00", discount="11.00", payments=[]),
            settings,
        )


def test_totals_not_enforced_when_disabled(fake_db, settings) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)
    relaxed = replace(settings, enforce_sale_totals=False)

    sale_id = register_sale(
        _request([CartLine(book_id=book["id"], quantity=1)], "7.00", subtotal="10.00",
                 payments=[PaymentEntry("Pix", Decimal("1.00"))]),
        relaxed,
    )

    assert get_sale(sale_id).total == Decimal("7.00")


def test_legacy_payment_method_is_stored_with_zero_amount(fake_db, settings) -> None:
    book = fake_db.add_book("A", price="10.00", stock=5)
    request = SaleRequest(
        cart=[CartLine(book_id=book["id"], quantity=1)],
        subtotal=Decimal("10.00"),
        discount=Decimal("0.00"),
        total=Decimal("10.00"),
        legacy_payment_method=" dinheiro ",
        buyer_name="  ",
    )

    sale_id = register_sale(request, settings)

    stored = fake_db.tables["sales"][0]
    assert stored["payment_data"] == [{"method": "dinheiro", "amount": 0.0}]
    assert stored["buyer_name"] is None
    assert [p.method for p in get_sale(sale_id).payments()] == ["Dinheiro"]


def test_resolve_payments_rejects_blank_method() -> None:
    with pytest.raises(ValidationError):
        resolve_payments([PaymentEntry("  ", Decimal("1.00"))], None)


def test_resolve_payments_rejects_negative_amount() -> None:
    with pytest.raises(ValidationError):
        resolve_payments([PaymentEntry("Pix", Decimal("-1.00"))], None)


@pytest.mark.parametrize("amount", [Decimal("1e30"), Decimal("NaN"), Decimal("100000000.00")])
def test_resolve_payments_rejects_unstorable_amount(amount) -> None:
    with pytest.raises(ValidationError):
        resolve_payments([PaymentEntry("Pix", amount)], None)


def test_resolve_payments_without_anything() -> None:
    resolved = resolve_payments(None, "   ")

    assert resolved.entries == []
    assert not resolved.legacy


def test_verify_admin_password(settings) -> None:
    assert verify_admin_password(settings.admin_password, settings)
    assert verify_admin_password(f"  {settings.admin_password} ", settings)
    assert not verify_admin_password("nope", settings)
    assert not verify_admin_password(None, settings)
    assert not verify_admin_password("", replace(settings, admin_password=""))
