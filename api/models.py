"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Book Models
# ============================================================================

class BookRequest(BaseModel):
    """Create or replace a catalog entry."""
    title: str = Field(..., min_length=1)
    author: Optional[str] = None
    price: Decimal = Field(Decimal("0.00"), ge=0)
    stock: int = Field(0, ge=0)
    barcode: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Dom Casmurro",
                "author": "Machado de Assis",
                "price": "39.90",
                "stock": 12,
                "barcode": "9788535910667"
            }
        }


class BookResponse(BaseModel):
    """Single catalog entry."""
    id: int
    title: str
    author: Optional[str] = None
    price: Decimal
    stock: int
    barcode: Optional[str] = None
    in_stock: bool


# ============================================================================
# Sale Models
# ============================================================================

class CartLineRequest(BaseModel):
    """One (book, quantity) pair in the cart."""
    book_id: int
    quantity: int
    unit_price: Optional[Decimal] = Field(
        None,
        description="Price shown to the buyer; the catalog price is used when omitted"
    )
    courtesy: bool = Field(
        False,
        description="Give this line away (price 0); requires courtesy_password, as does a unit_price of 0"
    )


class PaymentRequest(BaseModel):
    """One part of the payment breakdown."""
    method: str
    amount: Optional[Decimal] = None


class SaleCreateRequest(BaseModel):
    """Request to register a sale."""
    cart: List[CartLineRequest] = Field(default_factory=list)
    payments: Optional[List[PaymentRequest]] = None
    payment_method: Optional[str] = Field(
        None,
        description="Legacy single payment method string (used only when payments is absent)"
    )
    buyer_name: Optional[str] = None
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    courtesy_password: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "cart": [{"book_id": 1, "quantity": 2, "unit_price": "10.00"}],
                "payments": [
                    {"method": "Pix", "amount": "15.00"},
                    {"method": "Dinheiro", "amount": "5.00"}
                ],
                "buyer_name": "Maria",
                "subtotal": "20.00",
                "discount": "0.00",
                "total": "20.00"
            }
        }


class SaleCreateResponse(BaseModel):
    """Response after a sale is committed."""
    sale_id: int
    message: str


class SaleItemResponse(BaseModel):
    book_id: int
    title: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PaymentResponse(BaseModel):
    method: str
    amount: Decimal


class SaleResponse(BaseModel):
    """A committed sale with its canonical payment breakdown."""
    id: int
    buyer_name: Optional[str] = None
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    sold_at: datetime.datetime
    courtesy: bool
    payments: List[PaymentResponse]
    items: List[SaleItemResponse]


# ============================================================================
# Report Models
# ============================================================================

class PaymentReportRow(BaseModel):
    date: datetime.date
    method: str
    sale_count: int
    total_amount: Decimal


class PaymentReportResponse(BaseModel):
    rows: List[PaymentReportRow]


class TopBookRow(BaseModel):
    book_id: int
    title: str
    quantity_sold: int


class TopBooksResponse(BaseModel):
    rows: List[TopBookRow]
    include_courtesy: bool


class CourtesyBookRow(BaseModel):
    book_id: int
    title: str
    courtesy_quantity: int


class TotalsResponse(BaseModel):
    sales_incl_courtesy: int
    books_incl_courtesy: int
    sales_excl_courtesy: int
    books_excl_courtesy: int
    courtesy_by_book: List[CourtesyBookRow]


class DailyTotalsRow(BaseModel):
    date: datetime.date
    sales_incl_courtesy: int
    sales_excl_courtesy: int
    books_incl_courtesy: int
    books_excl_courtesy: int


class DailyTotalsResponse(BaseModel):
    rows: List[DailyTotalsRow]


class VoucherSaleRow(BaseModel):
    sale_id: int
    sold_at: datetime.datetime
    buyer_name: Optional[str] = None
    items: List[SaleItemResponse]
    total: Decimal
    voucher_amount: Decimal


class VoucherDayRow(BaseModel):
    date: datetime.date
    sales: List[VoucherSaleRow]
    day_total: Decimal
    day_voucher_total: Decimal


class VoucherReportResponse(BaseModel):
    days: List[VoucherDayRow]
    grand_total: Decimal
    voucher_total: Decimal
    cap: Decimal


# ============================================================================
# Auth Models
# ============================================================================

class PasswordRequest(BaseModel):
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    kind: str
    detail: Optional[str] = None
    status_code: int
    book_id: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Insufficient stock for book 7",
                "kind": "insufficient_stock",
                "detail": None,
                "status_code": 409,
                "book_id": 7
            }
        }
