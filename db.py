"""
Database operations module.
Handles Supabase client initialization, logging setup, and the generic
row helpers every service builds on (soft-delete aware).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from supabase import Client, create_client
from tenacity import retry, stop_after_attempt, wait_exponential

from services.errors import DatabaseError

# Use a dedicated DB logger
logger = logging.getLogger("armory_db")


# ==============================================================
# Protocol-based Dependency Injection
# ==============================================================


class SupabaseLike(Protocol):
    """Protocol to allow fake/mocked Supabase clients in tests."""

    def table(self, name: str) -> Any: ...


# Global Supabase client
supabase_client: Optional[SupabaseLike] = None


def set_supabase_client(client: Optional[SupabaseLike]) -> None:
    """Dependency injection hook for tests."""
    global supabase_client
    supabase_client = client
    logger.info("[DB] Supabase client overridden")


def setup_logging():
    """Configure logging for the application.

    This function should be called at application startup.
    It configures the logging format and level.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=10),
    reraise=True,
)
def init_supabase() -> Optional[Client]:
    """Initialize Supabase client with retry logic.

    Returns:
        Optional[Client]: Supabase client if credentials are present, None otherwise

    Note:
        - Retries up to 3 times with exponential backoff
        - Missing credentials are not an error: the app runs without a database
    """
    global supabase_client

    if supabase_client is not None:
        return supabase_client

    url: str = os.environ.get("SUPABASE_URL", "")
    key: str = os.environ.get("SUPABASE_KEY", "")
    if not url or not key:
        logger.warning("Missing Supabase environment variables - running without Supabase")
        return None

    client = create_client(url, key)
    supabase_client = client
    logger.info("Supabase client initialized successfully")
    return client


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _client() -> SupabaseLike:
    if not supabase_client:
        logger.warning("Supabase client not available")
        raise DatabaseError("Database is not configured")
    return supabase_client


# --- Filter helpers ---
# Filter keys use a column__op suffix: {"owner_id": 3, "count__gte": 1}.
# A bare column with a None value means IS NULL.
_OPS = {"eq", "neq", "gt", "gte", "lt", "lte", "ilike", "in", "notnull"}


def _apply_filters(query, filters: Optional[Dict[str, Any]]):
    for key, value in (filters or {}).items():
        column, _, op = key.partition("__")
        op = op or "eq"
        if op not in _OPS:
            raise ValueError(f"Unsupported filter operator: {op}")
        if op == "eq" and value is None:
            query = query.is_(column, "null")
        elif op == "notnull":
            query = query.not_.is_(column, "null")
        elif op == "in":
            query = query.in_(column, list(value))
        else:
            query = getattr(query, op)(column, value)
    return query


@dataclass
class QueryResult:
    """Rows returned by a select plus the total matching count."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0

    @property
    def empty(self) -> bool:
        return not self.rows


# --- General DB Helpers ---
def select_rows(
    table: str,
    filters: Optional[Dict[str, Any]] = None,
    order: Sequence[Tuple[str, bool]] = (),
    limit: Optional[int] = None,
    offset: int = 0,
    search: Optional[Tuple[str, str]] = None,
    include_deleted: bool = False,
) -> QueryResult:
    """Select rows from a table.

    Args:
        table: Table name.
        filters: column__op filters (see _apply_filters).
        order: (column, descending) pairs applied in sequence.
        limit: Page size. None returns every match.
        offset: Rows to skip when limit is set.
        search: (column, term) for a case-insensitive substring match.
        include_deleted: Include soft-deleted rows.

    Returns:
        QueryResult with the page of rows and the exact total.
    """
    client = _client()
    try:
        query = client.table(table).select("*", count="exact")
        if not include_deleted:
            query = query.is_("deleted_at", "null")
        query = _apply_filters(query, filters)
        if search and search[1]:
            query = query.ilike(search[0], f"%{search[1]}%")
        for column, descending in order:
            query = query.order(column, desc=descending)
        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        response = query.execute()
    except Exception as e:
        logger.exception(f"Error selecting rows from {table}: {e}")
        raise DatabaseError(f"Failed to read {table}") from e

    rows = response.data or []
    total = response.count if response.count is not None else len(rows)
    return QueryResult(rows=rows, total=total)


def find_row(
    table: str, include_deleted: bool = False, **equals: Any
) -> Optional[Dict[str, Any]]:
    """Return the first row matching all equality filters, or None."""
    client = _client()
    try:
        query = client.table(table).select("*")
        if not include_deleted:
            query = query.is_("deleted_at", "null")
        query = _apply_filters(query, equals)
        response = query.limit(1).execute()
    except Exception as e:
        logger.exception(f"Error looking up row in {table}: {e}")
        raise DatabaseError(f"Failed to read {table}") from e

    if response.data:
        return response.data[0]
    return None


def get_row(table: str, row_id: int, include_deleted: bool = False) -> Optional[Dict[str, Any]]:
    return find_row(table, include_deleted=include_deleted, id=row_id)


def insert_row(table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a row and return it as stored."""
    client = _client()
    stamp = now_iso()
    record = {"created_at": stamp, "updated_at": stamp, "deleted_at": None, **payload}
    try:
        response = client.table(table).insert(record).execute()
    except Exception as e:
        logger.exception(f"Error inserting row in {table}: {e}")
        raise DatabaseError(f"Failed to write {table}") from e

    if not response.data:
        raise DatabaseError(f"Insert into {table} returned no data")
    row = response.data[0]
    logger.debug(f"[DB] Inserted {table} id={row.get('id')}")
    return row


def update_row(table: str, row_id: int, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Update a row by id. Returns the updated row, or None when no row matched."""
    client = _client()
    record = {**payload, "updated_at": now_iso()}
    try:
        response = client.table(table).update(record).eq("id", row_id).execute()
    except Exception as e:
        logger.exception(f"Error updating {table} id={row_id}: {e}")
        raise DatabaseError(f"Failed to update {table}") from e

    if response.data:
        return response.data[0]
    logger.warning(f"[DB] Update matched no rows in {table} for id={row_id}")
    return None


def soft_delete_row(table: str, row_id: int, stamp: Optional[str] = None) -> bool:
    """Mark a row deleted. Returns False when the row is missing or already deleted."""
    if get_row(table, row_id) is None:
        return False
    stamp = stamp or now_iso()
    return update_row(table, row_id, {"deleted_at": stamp}) is not None


def soft_delete_where(table: str, filters: Dict[str, Any], stamp: Optional[str] = None) -> int:
    """Soft-delete every active row matching filters. Returns the affected count."""
    client = _client()
    stamp = stamp or now_iso()
    try:
        query = client.table(table).update({"deleted_at": stamp, "updated_at": stamp})
        query = _apply_filters(query.is_("deleted_at", "null"), filters)
        response = query.execute()
    except Exception as e:
        logger.exception(f"Error soft-deleting rows in {table}: {e}")
        raise DatabaseError(f"Failed to update {table}") from e
    return len(response.data or [])


def restore_row(
    table: str, row_id: int, payload: Optional[Dict[str, Any]] = None
) -> Optional[Dict[str, Any]]:
    """Clear deleted_at (optionally applying extra changes) on a soft-deleted row."""
    return update_row(table, row_id, {**(payload or {}), "deleted_at": None})


def count_rows(table: str, filters: Optional[Dict[str, Any]] = None) -> int:
    client = _client()
    try:
        query = client.table(table).select("id", count="exact").is_("deleted_at", "null")
        response = _apply_filters(query, filters).execute()
    except Exception as e:
        logger.exception(f"Error counting rows in {table}: {e}")
        raise DatabaseError(f"Failed to count {table}") from e
    if response.count is not None:
        return response.count
    return len(response.data or [])


def ping() -> bool:
    """Cheap connectivity check used by /health."""
    if not supabase_client:
        return False
    try:
        supabase_client.table("users").select("id").limit(1).execute()
        return True
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return False
