"""
Connection protocol consumed by Model, and a psycopg implementation.

A Model never builds full statements itself: it hands a table name, an
equality query and the record data to the connection, and only renders
the ORDER BY / LIMIT tail of list() using the connection's escape_id().
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from psycopg import sql

from tablegate import db

logger = logging.getLogger(__name__)

# Update values of the form (INCR, amount) request an atomic increment.
INCR = "$incr"


@dataclass(frozen=True)
class ExecResult:
    insert_id: Any = None
    affected_rows: int = 0


@runtime_checkable
class Connection(Protocol):
    def query(self, query: Any, params: Any = None) -> Any: ...

    def escape_id(self, identifier: str) -> str: ...

    def escape(self, value: Any) -> str: ...

    def find_one(
        self, table: str, query: dict | None, options: dict | None = None
    ) -> dict | None: ...

    def find(self, table: str, query: dict | None, options: dict | None = None) -> list[dict]: ...

    def insert(self, table: str, record: dict, returning: str | None = None) -> ExecResult: ...

    def update(self, table: str, query: dict | None, data: dict) -> ExecResult: ...

    def delete(self, table: str, query: dict | None) -> ExecResult: ...


def supports_lookup(connection: Any) -> bool:
    """True when the connection can serve single-row lookups."""
    return callable(getattr(connection, "find_one", None))


def is_incr(value: Any) -> bool:
    return isinstance(value, (tuple, list)) and len(value) == 2 and value[0] == INCR


class PgConnection:
    """
    Connection backed by PostgreSQL through psycopg 3.

    Each statement borrows a connection from tablegate.db.get_connection(),
    so a test override set there is honoured. escape_id() and escape()
    render without a connection. Identifiers are always quoted with
    psycopg.sql.Identifier and values always travel as parameters.
    """

    def __init__(self, conninfo: str | None = None):
        self.conninfo = conninfo

    # Raw access

    def query(self, query: db.Query, params: tuple = None) -> list[dict]:
        """Run an arbitrary statement; returns rows when it produces any."""
        with db.get_cursor(self.conninfo) as cur:
            cur.execute(query, params)
            return cur.fetchall() if cur.description else []

    def escape_id(self, identifier: str) -> str:
        return sql.Identifier(identifier).as_string()

    def escape(self, value: Any) -> str:
        return sql.Literal(value).as_string()

    # Statement builders

    def _where(self, query: dict | None) -> tuple[sql.Composable, list]:
        if not query:
            return sql.SQL(""), []
        clauses = []
        params = []
        for field, value in query.items():
            if value is None:
                clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(field)))
            else:
                clauses.append(sql.SQL("{} = %s").format(sql.Identifier(field)))
                params.append(value)
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses), params

    def _assignments(self, data: dict) -> tuple[sql.Composable, list]:
        parts = []
        params = []
        for field, value in data.items():
            column = sql.Identifier(field)
            if is_incr(value):
                parts.append(sql.SQL("{} = {} + %s").format(column, column))
                params.append(value[1])
            else:
                parts.append(sql.SQL("{} = %s").format(column))
                params.append(value)
        return sql.SQL(", ").join(parts), params

    # Collaborator interface

    def find_one(
        self, table: str, query: dict | None, options: dict | None = None
    ) -> dict | None:
        options = options or {}
        where, params = self._where(query)
        stmt = sql.SQL("SELECT {} FROM {}{} LIMIT 1").format(
            sql.SQL(options.get("fields", "*")), sql.Identifier(table), where
        )
        logger.debug("find_one %s %r", table, params)
        return db.fetch_one(stmt, tuple(params), self.conninfo)

    def find(self, table: str, query: dict | None, options: dict | None = None) -> list[dict]:
        options = options or {}
        where, params = self._where(query)
        stmt = sql.SQL("SELECT {} FROM {}{}{}").format(
            sql.SQL(options.get("fields", "*")),
            sql.Identifier(table),
            where,
            sql.SQL(options.get("tail", "")),
        )
        logger.debug("find %s %r tail=%r", table, params, options.get("tail", ""))
        return db.fetch_all(stmt, tuple(params), self.conninfo)

    def insert(self, table: str, record: dict, returning: str | None = None) -> ExecResult:
        if record:
            stmt = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
                sql.Identifier(table),
                sql.SQL(", ").join(sql.Identifier(f) for f in record),
                sql.SQL(", ").join(sql.Placeholder() for _ in record),
            )
        else:
            stmt = sql.SQL("INSERT INTO {} DEFAULT VALUES").format(sql.Identifier(table))
        if returning:
            stmt += sql.SQL(" RETURNING {}").format(sql.Identifier(returning))
        logger.debug("insert %s %r", table, list(record))

        with db.get_cursor(self.conninfo) as cur:
            cur.execute(stmt, tuple(record.values()))
            row = cur.fetchone() if returning else None
            return ExecResult(
                insert_id=row[returning] if row else None,
                affected_rows=cur.rowcount,
            )

    def update(self, table: str, query: dict | None, data: dict) -> ExecResult:
        if not data:
            return ExecResult()
        assignments, set_params = self._assignments(data)
        where, where_params = self._where(query)
        stmt = sql.SQL("UPDATE {} SET {}{}").format(sql.Identifier(table), assignments, where)
        logger.debug("update %s %r %r", table, list(data), where_params)
        return ExecResult(
            affected_rows=db.execute(stmt, tuple(set_params + where_params), self.conninfo)
        )

    def delete(self, table: str, query: dict | None) -> ExecResult:
        where, params = self._where(query)
        stmt = sql.SQL("DELETE FROM {}{}").format(sql.Identifier(table), where)
        logger.debug("delete %s %r", table, params)
        return ExecResult(affected_rows=db.execute(stmt, tuple(params), self.conninfo))
