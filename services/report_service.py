"""
Report service.

Loads committed sales (with line items and book titles) from the store and
hands them to the pure aggregations in domain.reports. Reports run outside any
transaction and see whatever is committed at read time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from config import Settings, get_settings
from domain.reports import (
    CourtesyBookRow,
    DailyTotalsRow,
    PaymentDateRow,
    SalesTotals,
    TopBookRow,
    VoucherReport,
    aggregate_by_payment_and_date,
    courtesy_by_book,
    daily_totals,
    sales_totals,
    top_selling_books,
    voucher_seduc_report,
)
from domain.sale import SaleRecord
from repositories.book_repository import get_book_titles
from repositories.sale_repository import list_sales


@dataclass(frozen=True, slots=True)
class GeneralTotals:
    totals: SalesTotals
    courtesy_by_book: List[CourtesyBookRow]


def _load() -> tuple[List[SaleRecord], Dict[int, str]]:
    titles = get_book_titles()
    return list_sales(titles), titles


def get_top_books(include_courtesy: bool = True, limit: int = 500) -> List[TopBookRow]:
    sales, titles = _load()
    return top_selling_books(sales, titles, include_courtesy=include_courtesy, limit=limit)


def get_payment_report(settings: Optional[Settings] = None) -> List[PaymentDateRow]:
    settings = settings or get_settings()
    sales, _titles = _load()
    return aggregate_by_payment_and_date(sales, settings.report_timezone)


def get_general_totals() -> GeneralTotals:
    sales, titles = _load()
    return GeneralTotals(totals=sales_totals(sales), courtesy_by_book=courtesy_by_book(sales, titles))


def get_daily_totals(settings: Optional[Settings] = None) -> List[DailyTotalsRow]:
    settings = settings or get_settings()
    sales, _titles = _load()
    return daily_totals(sales, settings.report_timezone)


def get_voucher_seduc_report(settings: Optional[Settings] = None) -> VoucherReport:
    settings = settings or get_settings()
    sales, _titles = _load()
    return voucher_seduc_report(sales, settings.report_timezone, settings.voucher_seduc_cap)


__all__ = [
    "GeneralTotals",
    "get_top_books",
    "get_payment_report",
    "get_general_totals",
    "get_daily_totals",
    "get_voucher_seduc_report",
]
