"""
Domain: sales reports (pure).

All reports are stateless read-time computations over committed, immutable
sales and their line items. No I/O happens here; the report service loads the
rows and passes them in.

Calendar days are always computed in a fixed reference timezone so a sale is
attributed to exactly one day regardless of how the store renders timestamps.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .payments import VOUCHER_SEDUC
from .sale import SaleLineItem, SaleRecord
from .time import local_date

_ZERO = Decimal("0.00")


@dataclass(frozen=True, slots=True)
class PaymentDateRow:
    date: date
    method: str
    sale_count: int
    total_amount: Decimal


@dataclass(frozen=True, slots=True)
class TopBookRow:
    book_id: int
    title: str
    quantity_sold: int


@dataclass(frozen=True, slots=True)
class SalesTotals:
    sales_incl_courtesy: int
    books_incl_courtesy: int
    sales_excl_courtesy: int
    books_excl_courtesy: int


@dataclass(frozen=True, slots=True)
class CourtesyBookRow:
    book_id: int
    title: str
    courtesy_quantity: int


@dataclass(frozen=True, slots=True)
class DailyTotalsRow:
    date: date
    sales_incl_courtesy: int
    sales_excl_courtesy: int
    books_incl_courtesy: int
    books_excl_courtesy: int


@dataclass(frozen=True, slots=True)
class VoucherSale:
    sale_id: int
    sold_at: datetime
    buyer_name: Optional[str]
    items: Tuple[SaleLineItem, ...]
    total: Decimal
    voucher_amount: Decimal


@dataclass(frozen=True, slots=True)
class VoucherDay:
    date: date
    sales: Tuple[VoucherSale, ...]
    day_total: Decimal
    day_voucher_total: Decimal


@dataclass(frozen=True, slots=True)
class VoucherReport:
    days: Tuple[VoucherDay, ...]
    grand_total: Decimal
    voucher_total: Decimal


def _counts(sale: SaleRecord, include_courtesy: bool) -> bool:
    return include_courtesy or not sale.is_courtesy


def _title_for(item: SaleLineItem, titles: Mapping[int, str]) -> str:
    return item.title or titles.get(item.book_id) or f"#{item.book_id}"


def aggregate_by_payment_and_date(sales: Iterable[SaleRecord], tz_name: str) -> List[PaymentDateRow]:
    """
    Group sales by (local date, canonical payment method).

    A sale counts at most once per (date, method) even when its breakdown lists
    the same method twice; the amounts of all its parts for that method are summed.
    Sorted by date descending, then amount descending.
    """

    sale_ids: Dict[Tuple[date, str], Set[int]] = defaultdict(set)
    amounts: Dict[Tuple[date, str], Decimal] = defaultdict(lambda: _ZERO)

    for sale in sales:
        day = local_date(sale.sold_at, tz_name)
        for entry in sale.payments():
            key = (day, entry.method)
            sale_ids[key].add(sale.sale_id)
            amounts[key] += entry.amount

    rows = [
        PaymentDateRow(date=day, method=method, sale_count=len(ids), total_amount=amounts[(day, method)])
        for (day, method), ids in sale_ids.items()
    ]
    rows.sort(key=lambda row: row.method)
    rows.sort(key=lambda row: (row.date, row.total_amount), reverse=True)
    return rows


def top_selling_books(
    sales: Iterable[SaleRecord],
    titles: Mapping[int, str],
    *,
    include_courtesy: bool = True,
    limit: int = 500,
) -> List[TopBookRow]:
    """Books ranked by quantity sold (ties broken by title)."""

    quantities: Dict[int, int] = defaultdict(int)
    names: Dict[int, str] = {}

    for sale in sales:
        if not _counts(sale, include_courtesy):
            continue
        for item in sale.items:
            quantities[item.book_id] += item.quantity
            names.setdefault(item.book_id, _title_for(item, titles))

    rows = [TopBookRow(book_id=book_id, title=names[book_id], quantity_sold=qty) for book_id, qty in quantities.items()]
    rows.sort(key=lambda row: (-row.quantity_sold, row.title))
    return rows[:limit]


def sales_totals(sales: Iterable[SaleRecord]) -> SalesTotals:
    """Number of sales and books sold, with and without courtesy sales."""

    sales_all = sales_paid = books_all = books_paid = 0
    for sale in sales:
        sales_all += 1
        books_all += sale.books_sold
        if not sale.is_courtesy:
            sales_paid += 1
            books_paid += sale.books_sold

    return SalesTotals(
        sales_incl_courtesy=sales_all,
        books_incl_courtesy=books_all,
        sales_excl_courtesy=sales_paid,
        books_excl_courtesy=books_paid,
    )


def courtesy_by_book(sales: Iterable[SaleRecord], titles: Mapping[int, str]) -> List[CourtesyBookRow]:
    """Quantity of each book given away in courtesy (total = 0) sales."""

    quantities: Dict[int, int] = defaultdict(int)
    names: Dict[int, str] = {}

    for sale in sales:
        if not sale.is_courtesy:
            continue
        for item in sale.items:
            quantities[item.book_id] += item.quantity
            names.setdefault(item.book_id, _title_for(item, titles))

    rows = [
        CourtesyBookRow(book_id=book_id, title=names[book_id], courtesy_quantity=qty)
        for book_id, qty in quantities.items()
        if qty > 0
    ]
    rows.sort(key=lambda row: (-row.courtesy_quantity, row.title))
    return rows


def daily_totals(sales: Iterable[SaleRecord], tz_name: str) -> List[DailyTotalsRow]:
    """Per local day: sales and books sold, with and without courtesy sales."""

    by_day: Dict[date, List[SaleRecord]] = defaultdict(list)
    for sale in sales:
        by_day[local_date(sale.sold_at, tz_name)].append(sale)

    rows = []
    for day, day_sales in by_day.items():
        totals = sales_totals(day_sales)
        rows.append(
            DailyTotalsRow(
                date=day,
                sales_incl_courtesy=totals.sales_incl_courtesy,
                sales_excl_courtesy=totals.sales_excl_courtesy,
                books_incl_courtesy=totals.books_incl_courtesy,
                books_excl_courtesy=totals.books_excl_courtesy,
            )
        )
    rows.sort(key=lambda row: row.date, reverse=True)
    return rows


def voucher_seduc_report(sales: Iterable[SaleRecord], tz_name: str, cap: Decimal) -> VoucherReport:
    """
    Sales paid (partly or wholly) with the Voucher SEDUC, grouped per local day.

    The voucher amount considered for a single sale never exceeds `cap`.
    """

    by_day: Dict[date, List[VoucherSale]] = defaultdict(list)

    for sale in sales:
        voucher_paid = sum(
            (entry.amount for entry in sale.payments() if entry.method == VOUCHER_SEDUC),
            _ZERO,
        )
        if voucher_paid <= 0:
            continue
        by_day[local_date(sale.sold_at, tz_name)].append(
            VoucherSale(
                sale_id=sale.sale_id,
                sold_at=sale.sold_at,
                buyer_name=sale.buyer_name,
                items=sale.items,
                total=sale.total,
                voucher_amount=min(voucher_paid, cap),
            )
        )

    days = []
    for day in sorted(by_day, reverse=True):
        day_sales = sorted(by_day[day], key=lambda s: s.sold_at, reverse=True)
        days.append(
            VoucherDay(
                date=day,
                sales=tuple(day_sales),
                day_total=sum((s.total for s in day_sales), _ZERO),
                day_voucher_total=sum((s.voucher_amount for s in day_sales), _ZERO),
            )
        )

    return VoucherReport(
        days=tuple(days),
        grand_total=sum((d.day_total for d in days), _ZERO),
        voucher_total=sum((d.day_voucher_total for d in days), _ZERO),
    )


__all__ = [
    "PaymentDateRow",
    "TopBookRow",
    "SalesTotals",
    "CourtesyBookRow",
    "DailyTotalsRow",
    "VoucherSale",
    "VoucherDay",
    "VoucherReport",
    "aggregate_by_payment_and_date",
    "top_selling_books",
    "sales_totals",
    "courtesy_by_book",
    "daily_totals",
    "voucher_seduc_report",
]
