"""
Supabase client initialization.

This module contains *only* the database connection setup. Repository modules
call `get_supabase()` for the shared client and run their queries through
`execute_query()`, which translates store failures into domain errors.

The client is built lazily so importing a repository never needs credentials;
SUPABASE_URL and SUPABASE_KEY are checked the first time a query runs.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from postgrest.exceptions import APIError

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config import get_settings
from domain.errors import ConflictError, InternalError

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes surfaced by PostgREST.
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"

# Rows requested per page for full-table reads (Supabase's default max-rows).
PAGE_SIZE = 1000

_client: Optional[Client] = None


def get_supabase() -> Client:
    """Return the process-wide Supabase client, creating it on first use."""

    global _client
    if _client is None:
        settings = get_settings()
        if not settings.supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not settings.supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )
        _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client


def execute_query(query: Any, *, action: str) -> List[Dict[str, Any]]:
    """
    Execute a PostgREST query builder and return its rows.

    Raises:
        ConflictError: unique or foreign-key violation
        InternalError: any other store failure
    """

    try:
        response = query.execute()
    except APIError as e:
        code = str(getattr(e, "code", "") or "")
        if code in (FOREIGN_KEY_VIOLATION, UNIQUE_VIOLATION):
            raise ConflictError(f"Failed to {action}: {e.message or code}") from e
        logger.error(
            f"Store failure while trying to {action}",
            extra={"code": code, "store_message": getattr(e, "message", None)},
        )
        raise InternalError(f"Failed to {action}") from e

    error = getattr(response, "error", None)
    if error:
        logger.error(f"Store failure while trying to {action}", extra={"store_message": str(error)})
        raise InternalError(f"Failed to {action}")

    data = getattr(response, "data", None)
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


def execute_paged(
    build_query: Callable[[], Any],
    *,
    action: str,
    page_size: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch every row of a select, one `.range()` page at a time.

    PostgREST caps a single response (1000 rows on Supabase by default), so
    full-table reads must page. `build_query` returns a fresh, ordered query
    builder for each page; the order must be total (end with a unique column)
    so pages neither overlap nor skip rows. Paging stops at the first empty page,
    which stays correct when the server cap is below `page_size`.
    """

    page_size = page_size or PAGE_SIZE
    all_rows: List[Dict[str, Any]] = []
    offset = 0

    while True:
        page_rows = execute_query(
            build_query().range(offset, offset + page_size - 1),
            action=action,
        )
        if not page_rows:
            break
        all_rows.extend(page_rows)
        offset += len(page_rows)

    return all_rows


__all__ = [
    "get_supabase",
    "execute_query",
    "execute_paged",
    "PAGE_SIZE",
    "FOREIGN_KEY_VIOLATION",
    "UNIQUE_VIOLATION",
]
