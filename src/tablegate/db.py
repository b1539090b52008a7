"""
Database connection and query utilities.

Provides a thin layer over psycopg used by PgConnection, returning
rows as dictionaries.

For testing, use set_connection_override() to inject a connection
that will be used instead of creating new ones. This enables
transaction rollback between tests.
"""

import logging
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from tablegate.config import config

logger = logging.getLogger(__name__)

Query = str | sql.Composable

# =============================================================================
# Connection Override (for testing)
# =============================================================================

_connection_override: psycopg.Connection | None = None


def set_connection_override(conn: psycopg.Connection) -> None:
    """
    Set a connection to use instead of creating new ones.

    Used by test fixtures to ensure all database operations run
    within a single transaction that can be rolled back.

    Args:
        conn: The connection to use for all subsequent operations
    """
    global _connection_override
    _connection_override = conn


def clear_connection_override() -> None:
    """Clear the connection override, restoring normal behavior."""
    global _connection_override
    _connection_override = None


# =============================================================================
# Connection Management
# =============================================================================


@contextmanager
def get_connection(conninfo: str | None = None):
    """
    Context manager for database connections.

    In normal operation:
        - Opens a new connection to conninfo (defaults to config.database_url)
        - Commits on successful exit
        - Rolls back on exception
        - Closes connection when done

    With override set (testing):
        - Returns the override connection
        - Does NOT commit, rollback, or close
        - Caller (test fixture) manages the transaction
    """
    if _connection_override is not None:
        yield _connection_override
        return

    conn = psycopg.connect(conninfo or config.database_url)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def get_cursor(conninfo: str | None = None):
    """
    Context manager for a cursor with dict rows.

    Usage:
        with get_cursor() as cur:
            cur.execute("SELECT * FROM users")
            rows = cur.fetchall()  # List of dicts
    """
    with get_connection(conninfo) as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            yield cur


# =============================================================================
# Query Helpers
# =============================================================================


def execute(query: Query, params: tuple = None, conninfo: str | None = None) -> int:
    """
    Execute a query without returning rows.

    Returns:
        Number of rows affected
    """
    with get_cursor(conninfo) as cur:
        cur.execute(query, params)
        return cur.rowcount


def fetch_one(
    query: Query, params: tuple = None, conninfo: str | None = None
) -> dict[str, Any] | None:
    """
    Execute a query and return a single row as dict.

    Returns:
        Dict of column names to values, or None if no row found
    """
    with get_cursor(conninfo) as cur:
        cur.execute(query, params)
        return cur.fetchone()


def fetch_all(
    query: Query, params: tuple = None, conninfo: str | None = None
) -> list[dict[str, Any]]:
    """
    Execute a query and return all rows as list of dicts.

    Returns:
        List of dicts, empty list if no rows found
    """
    with get_cursor(conninfo) as cur:
        cur.execute(query, params)
        return cur.fetchall()
