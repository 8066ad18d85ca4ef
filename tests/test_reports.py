"""
Tests for `domain/reports.py`.

Covers:
- Payment/date aggregation (distinct sale counts, summed amounts, ordering)
- Local-day attribution in the report timezone
- Courtesy (total = 0) handling in totals and rankings
- Voucher SEDUC report with the per-sale cap
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from domain.payments import VOUCHER_SEDUC
from domain.reports import (
    aggregate_by_payment_and_date,
    courtesy_by_book,
    daily_totals,
    sales_totals,
    top_selling_books,
    voucher_seduc_report,
)
from domain.sale import SaleLineItem, SaleRecord

TZ = "America/Recife"
TITLES = {1: "Dom Casmurro", 2: "Vidas Secas", 3: "Capitães da Areia"}


def _sale(
    sale_id: int,
    total: str,
    sold_at: datetime,
    payment_data=None,
    items=(),
    buyer_name=None,
) -> SaleRecord:
    return SaleRecord(
        sale_id=sale_id,
        subtotal=Decimal(total),
        discount=Decimal("0.00"),
        total=Decimal(total),
        sold_at=sold_at,
        buyer_name=buyer_name,
        payment_data=payment_data,
        items=tuple(
            SaleLineItem(sale_id=sale_id, book_id=book_id, quantity=qty, unit_price=Decimal(price))
            for book_id, qty, price in items
        ),
    )


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_two_pix_sales_same_day_count_twice() -> None:
    sales = [
        _sale(1, "30.00", _utc(2025, 3, 10, 15), [{"method": "Pix", "amount": 30}]),
        _sale(2, "20.00", _utc(2025, 3, 10, 16), "Pix R$ 20,00"),
    ]

    rows = aggregate_by_payment_and_date(sales, TZ)

    assert len(rows) == 1
    assert rows[0].date == date(2025, 3, 10)
    assert rows[0].method == "Pix"
    assert rows[0].sale_count == 2
    assert rows[0].total_amount == Decimal("50.00")


def test_split_payment_counts_sale_under_each_method() -> None:
    sales = [_sale(1, "50.00", _utc(2025, 3, 10, 15), "Pix R$ 30,00 + Dinheiro R$ 20,00")]

    rows = aggregate_by_payment_and_date(sales, TZ)

    assert [(r.method, r.sale_count, r.total_amount) for r in rows] == [
        ("Pix", 1, Decimal("30.00")),
        ("Dinheiro", 1, Decimal("20.00")),
    ]


def test_same_method_twice_in_one_sale_counts_once() -> None:
    sales = [
        _sale(1, "15.00", _utc(2025, 3, 10, 15), [{"method": "Pix", "amount": 10}, {"method": "pix", "amount": 5}])
    ]

    rows = aggregate_by_payment_and_date(sales, TZ)

    assert len(rows) == 1
    assert rows[0].sale_count == 1
    assert rows[0].total_amount == Decimal("15.00")


def test_sale_is_attributed_to_local_day() -> None:
    # 02:00 UTC is 23:00 of the previous day in Recife (UTC-3).
    sales = [_sale(1, "10.00", _utc(2025, 3, 10, 2), [{"method": "Pix", "amount": 10}])]

    rows = aggregate_by_payment_and_date(sales, TZ)

    assert rows[0].date == date(2025, 3, 9)


def test_payment_rows_sorted_by_date_then_amount() -> None:
    sales = [
        _sale(1, "10.00", _utc(2025, 3, 9, 15), [{"method": "Pix", "amount": 10}]),
        _sale(2, "40.00", _utc(2025, 3, 10, 15), [{"method": "Dinheiro", "amount": 40}]),
        _sale(3, "60.00", _utc(2025, 3, 10, 16), [{"method": "Pix", "amount": 60}]),
        _sale(4, "99.00", _utc(2025, 3, 9, 16), [{"method": "Dinheiro", "amount": 99}]),
    ]

    rows = aggregate_by_payment_and_date(sales, TZ)

    assert [(r.date, r.method) for r in rows] == [
        (date(2025, 3, 10), "Pix"),
        (date(2025, 3, 10), "Dinheiro"),
        (date(2025, 3, 9), "Dinheiro"),
        (date(2025, 3, 9), "Pix"),
    ]


def test_sales_totals_separate_courtesy() -> None:
    sales = [
        _sale(1, "20.00", _utc(2025, 3, 10, 15), items=[(1, 2, "10.00")]),
        _sale(2, "0.00", _utc(2025, 3, 10, 16), items=[(2, 1, "0.00")]),
    ]

    totals = sales_totals(sales)

    assert totals.sales_incl_courtesy == 2
    assert totals.books_incl_courtesy == 3
    assert totals.sales_excl_courtesy == 1
    assert totals.books_excl_courtesy == 2


def test_top_books_with_and_without_courtesy() -> None:
    sales = [
        _sale(1, "30.00", _utc(2025, 3, 10, 15), items=[(1, 1, "10.00"), (2, 2, "10.00")]),
        _sale(2, "0.00", _utc(2025, 3, 10, 16), items=[(1, 3, "0.00")]),
    ]

    with_courtesy = top_selling_books(sales, TITLES)
    without_courtesy = top_selling_books(sales, TITLES, include_courtesy=False)

    assert [(r.title, r.quantity_sold) for r in with_courtesy] == [("Dom Casmurro", 4), ("Vidas Secas", 2)]
    assert [(r.title, r.quantity_sold) for r in without_courtesy] == [("Vidas Secas", 2), ("Dom Casmurro", 1)]


def test_top_books_limit_and_unknown_title() -> None:
    sales = [_sale(1, "30.00", _utc(2025, 3, 10, 15), items=[(9, 3, "10.00"), (1, 1, "10.00")])]

    rows = top_selling_books(sales, TITLES, limit=1)

    assert len(rows) == 1
    assert rows[0].title == "#9"


def test_courtesy_by_book() -> None:
    sales = [
        _sale(1, "0.00", _utc(2025, 3, 10, 15), items=[(1, 1, "0.00"), (3, 2, "0.00")]),
        _sale(2, "0.00", _utc(2025, 3, 11, 15), items=[(1, 2, "0.00")]),
        _sale(3, "10.00", _utc(2025, 3, 11, 16), items=[(2, 1, "10.00")]),
    ]

    rows = courtesy_by_book(sales, TITLES)

    assert [(r.book_id, r.courtesy_quantity) for r in rows] == [(1, 3), (3, 2)]


def test_daily_totals() -> None:
    sales = [
        _sale(1, "20.00", _utc(2025, 3, 10, 15), items=[(1, 2, "10.00")]),
        _sale(2, "0.00", _utc(2025, 3, 10, 16), items=[(2, 1, "0.00")]),
        _sale(3, "10.00", _utc(2025, 3, 11, 2), items=[(3, 1, "10.00")]),  # still the 10th locally
        _sale(4, "10.00", _utc(2025, 3, 11, 15), items=[(3, 1, "10.00")]),
    ]

    rows = daily_totals(sales, TZ)

    assert [r.date for r in rows] == [date(2025, 3, 11), date(2025, 3, 10)]
    assert rows[1].sales_incl_courtesy == 3
    assert rows[1].sales_excl_courtesy == 2
    assert rows[1].books_incl_courtesy == 4
    assert rows[1].books_excl_courtesy == 3


def test_voucher_report_caps_each_sale() -> None:
    sales = [
        _sale(1, "132.00", _utc(2025, 3, 10, 15), "Voucher SEDUC R$ 120,00 + Cartão de Débito R$ 12,00"),
        _sale(2, "80.00", _utc(2025, 3, 10, 18), [{"method": VOUCHER_SEDUC, "amount": 80}], buyer_name="Ana"),
        _sale(3, "50.00", _utc(2025, 3, 10, 19), [{"method": "Pix", "amount": 50}]),
        _sale(4, "100.00", _utc(2025, 3, 11, 15), "Voucher SEDUC R$ 100,00"),
    ]

    report = voucher_seduc_report(sales, TZ, Decimal("100.00"))

    assert [d.date for d in report.days] == [date(2025, 3, 11), date(2025, 3, 10)]
    day_10 = report.days[1]
    assert [s.sale_id for s in day_10.sales] == [2, 1]
    assert [s.voucher_amount for s in day_10.sales] == [Decimal("80.00"), Decimal("100.00")]
    assert day_10.day_total == Decimal("212.00")
    assert day_10.day_voucher_total == Decimal("180.00")
    assert report.grand_total == Decimal("312.00")
    assert report.voucher_total == Decimal("280.00")


def test_voucher_report_empty() -> None:
    report = voucher_seduc_report([], TZ, Decimal("100.00"))

    assert report.days == ()
    assert report.grand_total == Decimal("0.00")
    assert report.voucher_total == Decimal("0.00")
