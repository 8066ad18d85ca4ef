"""
Sale repository (persistence).

This module provides persistence operations for sales. Writing a sale goes
through the `register_sale()` PostgreSQL function (db/schema.sql), which
inserts the header, the line items and the conditional stock decrements in a
single transaction; this module only calls it and reports its outcome.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from postgrest.exceptions import APIError

from domain.errors import InternalError, SaleNotFoundError
from domain.payments import PaymentEntry
from domain.sale import CartLine, SaleLineItem, SaleRecord
from domain.time import parse_utc_datetime
from repositories.client import execute_paged, execute_query, get_supabase

logger = logging.getLogger(__name__)

# Supabase table names for sale records.
# Keep these aligned with db/schema.sql.
_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"
_REGISTER_SALE_FUNCTION: str = "register_sale"


@dataclass(frozen=True, slots=True)
class AtomicSaleResult:
    """Result from the register_sale PostgreSQL function."""

    success: bool
    sale_id: Optional[int]
    error_code: Optional[str]
    error_message: Optional[str]
    book_id: Optional[int] = None


def _money(value: Any) -> Decimal:
    return Decimal(str(value if value is not None else "0")).quantize(Decimal("0.01"))


def _row_to_item(row: Mapping[str, Any], titles: Mapping[int, str]) -> SaleLineItem:
    book_id = int(row["book_id"])
    return SaleLineItem(
        sale_id=int(row["sale_id"]),
        book_id=book_id,
        quantity=int(row["quantity"]),
        unit_price=_money(row["unit_price"]),
        title=titles.get(book_id),
    )


def _row_to_sale(row: Mapping[str, Any], items: Sequence[SaleLineItem]) -> SaleRecord:
    """Convert a Supabase row (plus its line items) into a SaleRecord."""

    return SaleRecord(
        sale_id=int(row["id"]),
        buyer_name=row.get("buyer_name"),
        subtotal=_money(row.get("subtotal")),
        discount=_money(row.get("discount")),
        total=_money(row.get("total")),
        sold_at=parse_utc_datetime(row["sold_at_utc"]),
        payment_data=row.get("payment_data"),
        items=tuple(items),
    )


def _result_from_payload(payload: Mapping[str, Any]) -> AtomicSaleResult:
    if payload.get("success"):
        return AtomicSaleResult(
            success=True,
            sale_id=int(payload["sale_id"]),
            error_code=None,
            error_message=None,
        )
    book_id = payload.get("book_id")
    return AtomicSaleResult(
        success=False,
        sale_id=None,
        error_code=payload.get("error"),
        error_message=payload.get("message"),
        book_id=int(book_id) if book_id is not None else None,
    )


def register_sale_atomic(
    *,
    cart: Sequence[CartLine],
    payments: Sequence[PaymentEntry],
    buyer_name: Optional[str],
    subtotal: Decimal,
    discount: Decimal,
    total: Decimal,
) -> AtomicSaleResult:
    """
    Execute the atomic sale via the register_sale PostgreSQL function.

    The function:
    - Inserts the sale header with a server-assigned timestamp
    - Decrements each book's stock with `stock >= quantity` as the condition
    - Inserts each line item with the cart's unit price (or the catalog price)
    - Rolls everything back if any line cannot be fulfilled

    Raises:
        InternalError: the store could not be reached or failed unexpectedly
    """

    params = {
        "p_buyer_name": buyer_name,
        "p_subtotal": str(subtotal),
        "p_discount": str(discount),
        "p_total": str(total),
        "p_payment_data": [entry.to_dict() for entry in payments],
        "p_items": [
            {
                "book_id": line.book_id,
                "quantity": line.quantity,
                "unit_price": str(line.recorded_price) if line.recorded_price is not None else None,
            }
            for line in cart
        ],
    }

    try:
        response = get_supabase().rpc(_REGISTER_SALE_FUNCTION, params).execute()
    except APIError as e:
        # Some supabase-py versions raise APIError for jsonb function results,
        # success and failure alike; the payload is still the function's JSON.
        try:
            error_data = e.json() if callable(getattr(e, "json", None)) else {}
        except Exception:
            error_data = {}
        if isinstance(error_data, Mapping) and "success" in error_data:
            return _result_from_payload(error_data)

        logger.error("register_sale failed", extra={"code": getattr(e, "code", None), "store_message": str(e)})
        raise InternalError("Failed to register sale") from e

    error = getattr(response, "error", None)
    if error:
        logger.error("register_sale failed", extra={"store_message": str(error)})
        raise InternalError("Failed to register sale")

    payload = getattr(response, "data", None)
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, Mapping):
        raise InternalError("register_sale returned an unexpected payload")

    return _result_from_payload(payload)


def _load_items(sale_ids: Optional[Sequence[int]], titles: Mapping[int, str]) -> Dict[int, List[SaleLineItem]]:
    def build_query() -> Any:
        query = get_supabase().table(_SALE_ITEMS_TABLE).select("*")
        if sale_ids is not None:
            query = query.in_("sale_id", list(sale_ids))
        return query.order("id")

    rows = execute_paged(build_query, action="list sale items")

    grouped: Dict[int, List[SaleLineItem]] = defaultdict(list)
    for row in rows:
        item = _row_to_item(row, titles)
        grouped[item.sale_id].append(item)
    return grouped


def list_sales(titles: Optional[Mapping[int, str]] = None) -> List[SaleRecord]:
    """
    Retrieve every committed sale with its line items, newest first.

    Args:
        titles: optional book id -> title map used to label line items
    """

    rows = execute_paged(
        lambda: get_supabase()
        .table(_SALES_TABLE)
        .select("*")
        .order("sold_at_utc", desc=True)
        .order("id", desc=True),
        action="list sales",
    )
    items = _load_items(None, titles or {})
    return [_row_to_sale(row, items.get(int(row["id"]), [])) for row in rows]


def get_sale(sale_id: int, titles: Optional[Mapping[int, str]] = None) -> SaleRecord:
    """
    Retrieve a single sale with its line items.

    Raises:
        SaleNotFoundError: no sale has this id
    """

    rows = execute_query(
        get_supabase().table(_SALES_TABLE).select("*").eq("id", sale_id).limit(1),
        action="get sale",
    )
    if not rows:
        raise SaleNotFoundError(f"Sale not found: {sale_id}")

    items = _load_items([sale_id], titles or {})
    return _row_to_sale(rows[0], items.get(sale_id, []))


__all__ = [
    "AtomicSaleResult",
    "register_sale_atomic",
    "list_sales",
    "get_sale",
]
