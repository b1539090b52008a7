"""
Record gateway for a single table.

Every operation runs the same pipeline:

    format input -> filter unknown fields -> validate -> (required fields, add only)
        -> execute through the connection -> format output (reads only)

Field problems are collected and raised together as ValidationFailed;
anything the connection raises propagates unchanged.
"""

import copy
import decimal
import logging
import time
from collections.abc import Mapping
from typing import Any, Callable, Iterable

import pandas as pd

from tablegate.config import config
from tablegate.connection import INCR, Connection, supports_lookup
from tablegate.errors import IncompatibleConnection, MissingRequiredField, ValidationFailed
from tablegate.field import FieldRegistry
from tablegate.model.accessors import FieldAccessors, build_accessors
from tablegate.model.options import ListOptions, format_list_options, positive_number

logger = logging.getLogger(__name__)

InputFormatter = Callable[[dict, str], dict]
OutputFormatter = Callable[[Any], Any]


def _identity_input(record: dict, phase: str) -> dict:
    return record


def _identity_output(record: Any) -> Any:
    return record


class Model:
    """
    CRUD gateway over one table of a SQL connection.

    Args:
        connection: object implementing tablegate.connection.Connection
        table: table name
        fields: field name -> "string" | "number" | "date" | "*", a compiled
            pattern, or a predicate
        primary: primary key field
        limit: default page size for list()
        query_fields: fields that get per-field accessors (the primary key
            always does)
        required_fields: fields that must be present for add()
        input: (record, phase) -> record, applied to every incoming record
            or query; phase is one of get, list, count, add, update1,
            update2, delete
        output: record -> record, applied to what get() and list() return
    """

    def __init__(
        self,
        connection: Connection,
        table: str,
        fields: Mapping[str, Any],
        primary: str = "id",
        limit: int | None = None,
        query_fields: Iterable[str] | None = None,
        required_fields: Iterable[str] | None = None,
        input: InputFormatter | None = None,
        output: OutputFormatter | None = None,
    ):
        if connection is None:
            raise TypeError('Missing option "connection"')
        for method in ("query", "escape_id", "escape"):
            if not callable(getattr(connection, method, None)):
                raise TypeError(f"SQL connection must provide a {method}() method")
        if not isinstance(table, str) or not table:
            raise TypeError('Missing option "table"')
        if not isinstance(fields, Mapping) or not fields:
            raise TypeError('Missing option "fields"')

        self.connection = connection
        self.table = table
        self.primary = primary or "id"
        self.limit = int(float(limit)) if positive_number(limit) else config.default_limit
        self.fields = FieldRegistry(dict(fields))

        self.required_fields = list(required_fields or [])
        unknown = [f for f in self.required_fields if f not in self.fields]
        if unknown:
            raise ValueError(f"Required fields {unknown} are not declared in fields")

        query_fields = [*(query_fields or []), self.primary]
        undeclared = [f for f in query_fields if f not in self.fields]
        if undeclared:
            raise ValueError(f"Query fields {undeclared} are not declared in fields")

        self.format_input: InputFormatter = input if callable(input) else _identity_input
        self.format_output: OutputFormatter = output if callable(output) else _identity_output

        self.accessors: dict[str, FieldAccessors] = {}
        for field in query_fields:
            self.accessors[field] = build_accessors(self, field)

    def __repr__(self) -> str:
        return f"<Model table={self.table!r} primary={self.primary!r}>"

    def by(self, field: str) -> FieldAccessors:
        """Accessors bound to a quick-query field, e.g. model.by("id").get(3)."""
        try:
            return self.accessors[field]
        except KeyError:
            raise KeyError(f"{field!r} is not a query field of {self.table}") from None

    # Pipeline stages

    def _ensure_connection(self, operation: str) -> None:
        if not supports_lookup(self.connection):
            raise IncompatibleConnection(operation)

    def _validated(self, record: dict) -> dict:
        record = self.fields.filter(record)
        errors = self.fields.validate_all(record)
        if errors:
            raise ValidationFailed(errors)
        return record

    def _prepare(self, record: dict | None, phase: str) -> dict:
        return self._validated(self.format_input(copy.deepcopy(record) if record else {}, phase))

    def _check_required(self, data: dict) -> None:
        errors = [MissingRequiredField(f) for f in self.required_fields if f not in data]
        if errors:
            raise ValidationFailed(errors)

    # Operations

    def get(self, query: dict) -> Any:
        """Return the first record matching query, or None."""
        self._ensure_connection("get")
        logger.debug("%s.get()", self.table)

        query = self._prepare(query, "get")
        record = self.connection.find_one(self.table, query or None)
        return self.format_output(record)

    def list(self, query: dict, options: dict | None = None) -> list:
        """
        Return matching records, at most options["limit"] of them.

        Options:
            order: [("id", "asc"), ...] or "id:asc,created_at:desc"
            limit: page size, the model's default when not a positive number
            offset: rows to skip, 0 when not a positive number
        """
        self._ensure_connection("list")
        logger.debug("%s.list()", self.table)

        opts = ListOptions.normalize(copy.deepcopy(options), self.limit)
        query = self._prepare(query, "list")
        rows = self.connection.find(
            self.table, query or None, {"tail": opts.tail(self.connection.escape_id)}
        )
        return [self.format_output(row) for row in rows]

    def count(self, query: dict) -> int:
        self._ensure_connection("count")
        logger.debug("%s.count()", self.table)

        query = self._prepare(query, "count")
        row = self.connection.find_one(self.table, query or None, {"fields": "COUNT(*) AS c"})
        return int(row["c"])

    def add(self, data: dict) -> Any:
        """Insert a record and return its generated primary key, if any."""
        self._ensure_connection("add")
        logger.debug("%s.add()", self.table)

        data = self._prepare(data, "add")
        self._check_required(data)
        result = self.connection.insert(self.table, data, returning=self.primary)
        return result.insert_id if result else None

    def update(self, query: dict, data: dict) -> int:
        """Overwrite fields of matching records; returns the affected row count."""
        self._ensure_connection("update")
        logger.debug("%s.update()", self.table)

        query = self.format_input(copy.deepcopy(query) if query else {}, "update1")
        data = self.format_input(copy.deepcopy(data) if data else {}, "update2")
        query = self._validated(query)
        data = self._validated(data)
        result = self.connection.update(self.table, query or None, data)
        return result.affected_rows if result else 0

    def incr(self, query: dict, field: str, value: Any) -> int:
        """Atomically add value to field of matching records."""
        self._ensure_connection("incr")
        logger.debug("%s.incr()", self.table)

        query = self._prepare(query, "update1")
        result = self.connection.update(self.table, query or None, {field: (INCR, value)})
        return result.affected_rows if result else 0

    def delete(self, query: dict) -> int:
        self._ensure_connection("delete")
        logger.debug("%s.delete()", self.table)

        query = self._prepare(query, "delete")
        result = self.connection.delete(self.table, query or None)
        return result.affected_rows if result else 0

    # Helpers

    def list_frame(self, query: dict, options: dict | None = None) -> pd.DataFrame:
        """
        list() as a pandas DataFrame.

        Decimal columns are converted to float for numeric work.
        """
        df = pd.DataFrame(self.list(query, options))
        for col in df.columns:
            if len(df) and df[col].apply(lambda x: isinstance(x, decimal.Decimal)).all():
                df[col] = df[col].astype(float)
        return df

    def format_list_options(self, options: dict) -> dict:
        """Normalize list options taken from request parameters."""
        return format_list_options(options, self.fields, self.primary, self.limit)

    @staticmethod
    def timestamp() -> int:
        """Current Unix time in seconds."""
        return round(time.time())
