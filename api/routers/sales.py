"""
Sales API Endpoints.

Endpoints for registering sales and browsing committed sales.
"""

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends

from api.models import (
    PaymentResponse,
    SaleCreateRequest,
    SaleCreateResponse,
    SaleItemResponse,
    SaleResponse,
)
from config import Settings, get_settings
from domain.payments import PaymentEntry
from domain.sale import CartLine, SaleLineItem, SaleRecord
from repositories.book_repository import get_book_titles
from repositories.sale_repository import get_sale, list_sales
from services.sale_service import SaleRequest, register_sale

router = APIRouter()


def item_to_response(item: SaleLineItem) -> SaleItemResponse:
    return SaleItemResponse(
        book_id=item.book_id,
        title=item.title,
        quantity=item.quantity,
        unit_price=item.unit_price,
        line_total=item.line_total,
    )


def _to_response(sale: SaleRecord) -> SaleResponse:
    return SaleResponse(
        id=sale.sale_id,
        buyer_name=sale.buyer_name,
        subtotal=sale.subtotal,
        discount=sale.discount,
        total=sale.total,
        sold_at=sale.sold_at,
        courtesy=sale.is_courtesy,
        payments=[PaymentResponse(method=p.method, amount=p.amount) for p in sale.payments()],
        items=[item_to_response(item) for item in sale.items],
    )


@router.post(
    "/sales",
    response_model=SaleCreateResponse,
    status_code=201,
    summary="Register Sale",
    description="Record a sale, its line items and the stock decrements as one atomic unit."
)
def create_sale(request: SaleCreateRequest, settings: Settings = Depends(get_settings)):
    """
    Register a sale.

    **Process:**
    1. Validates the cart (non-empty, positive quantities) and amounts
    2. Verifies the courtesy password when any line is given away
    3. Checks total == subtotal - discount and that payments add up to the total
    4. Decrements each book's stock only if enough units remain
    5. If any line cannot be fulfilled, nothing is recorded (all-or-nothing)

    **Legacy clients** may send `payment_method` (a single string) instead of
    `payments`; it is stored with amount 0.

    **Failure response (insufficient stock):**
    ```json
    {
      "error": "Insufficient stock for book 7",
      "kind": "insufficient_stock",
      "status_code": 409,
      "book_id": 7
    }
    ```
    """
    cart = [
        CartLine(
            book_id=line.book_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            courtesy=line.courtesy,
        )
        for line in request.cart
    ]

    payments = None
    if request.payments is not None:
        payments = [
            PaymentEntry(method=p.method, amount=p.amount if p.amount is not None else Decimal("0.00"))
            for p in request.payments
        ]

    sale_id = register_sale(
        SaleRequest(
            cart=cart,
            payments=payments,
            legacy_payment_method=request.payment_method,
            buyer_name=request.buyer_name,
            subtotal=request.subtotal,
            discount=request.discount,
            total=request.total,
            courtesy_password=request.courtesy_password,
        ),
        settings,
    )

    return SaleCreateResponse(sale_id=sale_id, message="Sale registered successfully")


@router.get("/sales", response_model=List[SaleResponse], summary="List Sales")
def get_sales():
    """All committed sales, newest first, with line items and canonical payments."""
    titles = get_book_titles()
    return [_to_response(sale) for sale in list_sales(titles)]


@router.get("/sales/{sale_id}", response_model=SaleResponse, summary="Get Sale")
def get_single_sale(sale_id: int):
    return _to_response(get_sale(sale_id, get_book_titles()))
