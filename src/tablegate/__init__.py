"""
tablegate

Declarative single-table record gateway: field validation and CRUD
operations over a raw SQL connection.
"""

from tablegate.connection import Connection, ExecResult, PgConnection
from tablegate.errors import (
    FieldError,
    FieldNotExists,
    IncompatibleConnection,
    InvalidFieldValue,
    MissingRequiredField,
    TablegateError,
    ValidationFailed,
)
from tablegate.field import FieldRegistry
from tablegate.model import Model, create, extend

__all__ = [
    "Connection",
    "ExecResult",
    "FieldError",
    "FieldNotExists",
    "FieldRegistry",
    "IncompatibleConnection",
    "InvalidFieldValue",
    "MissingRequiredField",
    "Model",
    "PgConnection",
    "TablegateError",
    "ValidationFailed",
    "create",
    "extend",
]
