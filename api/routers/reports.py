"""
Reports API Endpoints.

Read-only sales reports. Every report is computed on request from committed
sales; nothing is cached.
"""

from fastapi import APIRouter, Depends, Query

from api.models import (
    CourtesyBookRow,
    DailyTotalsResponse,
    DailyTotalsRow,
    PaymentReportResponse,
    PaymentReportRow,
    TopBookRow,
    TopBooksResponse,
    TotalsResponse,
    VoucherDayRow,
    VoucherReportResponse,
    VoucherSaleRow,
)
from api.routers.sales import item_to_response
from config import Settings, get_settings
from services.report_service import (
    get_daily_totals,
    get_general_totals,
    get_payment_report,
    get_top_books,
    get_voucher_seduc_report,
)

router = APIRouter(prefix="/reports")


@router.get("/top-books", response_model=TopBooksResponse, summary="Top Selling Books")
def top_books(
    include_courtesy: bool = Query(True, description="Count books given away in courtesy sales"),
    limit: int = Query(500, ge=1, le=5000, description="Maximum number of rows"),
):
    rows = get_top_books(include_courtesy=include_courtesy, limit=limit)
    return TopBooksResponse(
        rows=[TopBookRow(book_id=r.book_id, title=r.title, quantity_sold=r.quantity_sold) for r in rows],
        include_courtesy=include_courtesy,
    )


@router.get(
    "/by-payment",
    response_model=PaymentReportResponse,
    summary="Sales By Payment Method",
    description="Per day and canonical payment method: number of sales and amount paid."
)
def by_payment(settings: Settings = Depends(get_settings)):
    """
    Handles both stored payment shapes:
    - Structured lists, e.g. `[{"method": "Pix", "amount": 30}, ...]`
    - Legacy text, e.g. `"Voucher SEDUC R$ 100,00 + Cartão de Débito R$ 32,00"`
    """
    rows = get_payment_report(settings)
    return PaymentReportResponse(
        rows=[
            PaymentReportRow(date=r.date, method=r.method, sale_count=r.sale_count, total_amount=r.total_amount)
            for r in rows
        ]
    )


@router.get("/totals", response_model=TotalsResponse, summary="General Totals")
def totals():
    result = get_general_totals()
    return TotalsResponse(
        sales_incl_courtesy=result.totals.sales_incl_courtesy,
        books_incl_courtesy=result.totals.books_incl_courtesy,
        sales_excl_courtesy=result.totals.sales_excl_courtesy,
        books_excl_courtesy=result.totals.books_excl_courtesy,
        courtesy_by_book=[
            CourtesyBookRow(book_id=r.book_id, title=r.title, courtesy_quantity=r.courtesy_quantity)
            for r in result.courtesy_by_book
        ],
    )


@router.get("/by-day", response_model=DailyTotalsResponse, summary="Daily Totals")
def by_day(settings: Settings = Depends(get_settings)):
    rows = get_daily_totals(settings)
    return DailyTotalsResponse(
        rows=[
            DailyTotalsRow(
                date=r.date,
                sales_incl_courtesy=r.sales_incl_courtesy,
                sales_excl_courtesy=r.sales_excl_courtesy,
                books_incl_courtesy=r.books_incl_courtesy,
                books_excl_courtesy=r.books_excl_courtesy,
            )
            for r in rows
        ]
    )


@router.get(
    "/voucher-seduc",
    response_model=VoucherReportResponse,
    summary="Voucher SEDUC Sales",
    description="Sales paid with the Voucher SEDUC, grouped per day; the voucher share of a sale is capped."
)
def voucher_seduc(settings: Settings = Depends(get_settings)):
    report = get_voucher_seduc_report(settings)
    return VoucherReportResponse(
        days=[
            VoucherDayRow(
                date=day.date,
                sales=[
                    VoucherSaleRow(
                        sale_id=s.sale_id,
                        sold_at=s.sold_at,
                        buyer_name=s.buyer_name,
                        items=[item_to_response(item) for item in s.items],
                        total=s.total,
                        voucher_amount=s.voucher_amount,
                    )
                    for s in day.sales
                ],
                day_total=day.day_total,
                day_voucher_total=day.day_voucher_total,
            )
            for day in report.days
        ],
        grand_total=report.grand_total,
        voucher_total=report.voucher_total,
        cap=settings.voucher_seduc_cap,
    )
