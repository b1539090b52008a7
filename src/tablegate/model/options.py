"""
List options normalization.

Ordering may be given as a sequence of (field, direction) pairs or in the
string form used by request parameters, "id:asc,created_at:desc".
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Container, Sequence

Order = list[tuple[str, str]]


def positive_number(value: Any) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0


def parse_order(order: str | Sequence | None) -> Order:
    """Turn either accepted ordering form into (field, direction) pairs."""
    if not order:
        return []
    if isinstance(order, str):
        pairs = [item.split(":") for item in order.split(",")]
        return [(f.strip(), d.strip()) for f, d in (p for p in pairs if len(p) == 2)]
    return [(str(item[0]), str(item[1]) if len(item) > 1 else "asc") for item in order]


def direction(value: Any) -> str:
    return "DESC" if str(value).upper() == "DESC" else "ASC"


@dataclass
class ListOptions:
    order: Order = field(default_factory=list)
    limit: int = 20
    offset: int = 0

    @classmethod
    def normalize(cls, options: dict | None, default_limit: int) -> "ListOptions":
        """
        Apply list() defaults.

        A limit or offset that is not a positive number falls back to the
        default page size or 0; an explicit limit of 0 therefore means the
        default page size.
        """
        options = options or {}
        limit = options.get("limit")
        offset = options.get("offset")
        return cls(
            order=parse_order(options.get("order")),
            limit=int(float(limit)) if positive_number(limit) else default_limit,
            offset=int(float(offset)) if positive_number(offset) else 0,
        )

    def tail(self, escape_id: Callable[[str], str]) -> str:
        """Render the ORDER BY / LIMIT clause appended to a find()."""
        tail = ""
        if self.order:
            tail += " ORDER BY " + ", ".join(
                f"{escape_id(f)} {direction(d)}" for f, d in self.order
            )
        tail += f" LIMIT {self.limit} OFFSET {self.offset}"
        return tail


def format_list_options(
    options: dict, fields: Container[str], primary: str = "id", default_limit: int = 20
) -> dict:
    """
    Normalize request-style list options.

    Order entries naming unknown fields are dropped, and the ordering falls
    back to the primary key ascending when nothing usable remains.
    """
    limit = options.get("limit")
    offset = options.get("offset")
    order = options.get("order")
    ret = {
        "limit": int(float(limit)) if positive_number(limit) else default_limit,
        "offset": int(float(offset)) if positive_number(offset) else 0,
        "order": [],
    }
    if isinstance(order, str) and order:
        ret["order"] = [(f, d) for f, d in parse_order(order) if f in fields]
    if not ret["order"]:
        ret["order"] = [(primary, "asc")]
    return ret
