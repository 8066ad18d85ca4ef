"""
Bookstore POS API - Main Application.

FastAPI application with CORS enabled for the admin/sales front end.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.models import ErrorResponse
from config import get_settings
from domain.errors import BookstoreError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Bookstore POS API",
    description="REST API for the bookstore catalog, sales and sales reports",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# The admin cookie needs credentials, so origins must be explicit in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: str, kind: str, detail=None, book_id=None) -> JSONResponse:
    body = ErrorResponse(error=error, kind=kind, detail=detail, status_code=status_code, book_id=book_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(BookstoreError)
def handle_bookstore_error(request: Request, exc: BookstoreError):
    return _error_response(exc.status_code, exc.message, exc.kind, book_id=exc.book_id)


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    return _error_response(422, "Invalid request", "validation_error", detail=str(exc.errors()))


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, "Internal server error", "internal_error")


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "bookstore-pos-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Bookstore POS API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import auth, books, reports, sales

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(books.router, prefix="/api/v1", tags=["Books"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
