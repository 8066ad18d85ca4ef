"""
Books API Endpoints.

CRUD for the catalog. Stock set here is administrative (restocking); sales
only ever decrement it through the sale transaction.
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from api.auth import require_admin
from api.models import BookRequest, BookResponse
from domain.book import Book, BookDraft
from repositories.book_repository import (
    create_book,
    delete_book,
    get_book,
    get_book_by_barcode,
    list_books,
    update_book,
)

router = APIRouter()


def _to_response(book: Book) -> BookResponse:
    return BookResponse(
        id=book.book_id,
        title=book.title,
        author=book.author,
        price=book.price,
        stock=book.stock,
        barcode=book.barcode,
        in_stock=book.in_stock,
    )


def _to_draft(request: BookRequest) -> BookDraft:
    return BookDraft(
        title=request.title,
        author=request.author,
        price=request.price,
        stock=request.stock,
        barcode=request.barcode,
    )


@router.get("/books", response_model=List[BookResponse], summary="List Books")
def get_books():
    """All books ordered by title."""
    return [_to_response(book) for book in list_books()]


@router.get(
    "/books/barcode/{barcode}",
    response_model=BookResponse,
    summary="Find Book By Barcode",
    description="Lookup used by the barcode scanner at checkout."
)
def get_book_with_barcode(barcode: str):
    return _to_response(get_book_by_barcode(barcode))


@router.get("/books/{book_id}", response_model=BookResponse, summary="Get Book")
def get_single_book(book_id: int):
    return _to_response(get_book(book_id))


@router.post("/books", response_model=BookResponse, status_code=201, summary="Create Book")
def add_book(request: BookRequest):
    """
    Add a book to the catalog.

    Titles and barcodes are unique; a duplicate returns 409.
    """
    return _to_response(create_book(_to_draft(request)))


@router.put("/books/{book_id}", response_model=BookResponse, summary="Update Book")
def replace_book(book_id: int, request: BookRequest):
    return _to_response(update_book(book_id, _to_draft(request)))


@router.delete(
    "/books/{book_id}",
    status_code=204,
    summary="Delete Book",
    description="Requires the admin cookie. Books with recorded sales cannot be deleted (409).",
    dependencies=[Depends(require_admin)],
)
def remove_book(book_id: int):
    delete_book(book_id)
    return Response(status_code=204)
