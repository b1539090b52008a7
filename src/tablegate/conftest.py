# src/tablegate/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
Model tests run against MemoryConnection, an in-memory implementation of
the connection protocol. PgConnection tests need a reachable PostgreSQL
at DATABASE_URL and are skipped otherwise.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["TABLEGATE_ENV"] = "test"

import re

import psycopg
import pytest

from tablegate import db
from tablegate.config import config
from tablegate.connection import ExecResult, is_incr

# =============================================================================
# In-memory connection
# =============================================================================

ORDER_RE = re.compile(r'"((?:[^"]|"")+)" (ASC|DESC)')
LIMIT_RE = re.compile(r"LIMIT (\d+) OFFSET (\d+)")


class MemoryConnection:
    """
    Connection protocol over plain lists of dicts.

    Every call is recorded in ``calls`` as (method, table) so tests can
    assert that nothing reached the connection.
    """

    def __init__(self, primary: str = "id"):
        self.primary = primary
        self.tables: dict[str, list[dict]] = {}
        self.sequences: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []

    def query(self, query, params=None):
        self.calls.append(("query", query))
        return []

    def escape_id(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def escape(self, value) -> str:
        return "'" + str(value).replace("'", "''") + "'"

    def _rows(self, table: str, query: dict | None) -> list[dict]:
        return [
            row
            for row in self.tables.setdefault(table, [])
            if all(row.get(k) == v for k, v in (query or {}).items())
        ]

    def find_one(self, table, query, options=None):
        self.calls.append(("find_one", table))
        rows = self._rows(table, query)
        if options and options.get("fields") == "COUNT(*) AS c":
            return {"c": len(rows)}
        return dict(rows[0]) if rows else None

    def find(self, table, query, options=None):
        self.calls.append(("find", table))
        rows = [dict(r) for r in self._rows(table, query)]
        tail = (options or {}).get("tail", "")
        for field, direction in reversed(ORDER_RE.findall(tail)):
            rows.sort(key=lambda r: r[field.replace('""', '"')], reverse=direction == "DESC")
        limit, offset = LIMIT_RE.search(tail).groups()
        return rows[int(offset) : int(offset) + int(limit)]

    def insert(self, table, record, returning=None):
        self.calls.append(("insert", table))
        row = dict(record)
        if self.primary not in row:
            self.sequences[table] = self.sequences.get(table, 0) + 1
            row[self.primary] = self.sequences[table]
        self.tables.setdefault(table, []).append(row)
        return ExecResult(insert_id=row.get(returning) if returning else None, affected_rows=1)

    def update(self, table, query, data):
        self.calls.append(("update", table))
        rows = self._rows(table, query)
        for row in rows:
            for field, value in data.items():
                row[field] = row.get(field, 0) + value[1] if is_incr(value) else value
        return ExecResult(affected_rows=len(rows))

    def delete(self, table, query):
        self.calls.append(("delete", table))
        doomed = self._rows(table, query)
        self.tables[table] = [r for r in self.tables[table] if not any(r is d for d in doomed)]
        return ExecResult(affected_rows=len(doomed))

    def executed(self) -> list[str]:
        return [method for method, _ in self.calls]


# =============================================================================
# Model Fixtures
# =============================================================================

USER_FIELDS = {
    "id": "number",
    "name": "string",
    "email": re.compile(r"^[^@\s]+@[^@\s]+$"),
    "group_id": "number",
    "value": "number",
    "created_at": "date",
    "role": lambda v: v in ("admin", "member"),
    "note": "*",
}


@pytest.fixture
def memory_connection():
    return MemoryConnection()


@pytest.fixture
def user_options(memory_connection) -> dict:
    """Keyword configuration for a users model."""
    return {
        "connection": memory_connection,
        "table": "users",
        "fields": dict(USER_FIELDS),
        "query_fields": ["email", "group_id"],
        "required_fields": ["name", "email"],
    }


@pytest.fixture
def user_model(user_options):
    from tablegate.model import Model

    return Model(**user_options)


@pytest.fixture
def seeded_users(user_model, memory_connection) -> list[dict]:
    """Insert 25 users with ids 1..25, alternating between two groups."""
    users = []
    for i in range(1, 26):
        record = {
            "name": f"user{i:02d}",
            "email": f"user{i:02d}@example.com",
            "group_id": i % 2,
            "value": i * 10,
        }
        record["id"] = user_model.add(record)
        users.append(record)
    memory_connection.calls.clear()
    return users


# =============================================================================
# PostgreSQL Fixtures
# =============================================================================

RECORDS_DDL = """
    CREATE TABLE IF NOT EXISTS records (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        value DOUBLE PRECISION NOT NULL DEFAULT 0,
        amount NUMERIC(10, 2),
        created_at TIMESTAMPTZ
    )
"""


@pytest.fixture(scope="session")
def pg_test_db():
    """Create the records table once per session, or skip without a server."""
    try:
        with psycopg.connect(config.database_url, connect_timeout=3) as conn:
            with conn.cursor() as cur:
                cur.execute(RECORDS_DDL)
            conn.commit()
    except psycopg.Error as e:
        pytest.skip(f"PostgreSQL not available at DATABASE_URL: {e}")

    yield config.database_url


@pytest.fixture
def pg_connection(pg_test_db):
    """
    Provide a database connection with transaction rollback.

    The records table is truncated first, and every PgConnection call in
    the test goes through this connection via the db override.
    """
    conn = psycopg.connect(pg_test_db)

    with conn.cursor() as cur:
        cur.execute("TRUNCATE records RESTART IDENTITY")
    conn.commit()

    db.set_connection_override(conn)

    yield conn

    conn.rollback()
    db.clear_connection_override()
    conn.close()

