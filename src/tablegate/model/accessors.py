import logging
from dataclasses import dataclass
from typing import Any, Callable

from tablegate.errors import MissingRequiredField, ValidationFailed

logger = logging.getLogger(__name__)


def hum_name(field: str) -> str:
    """user_id -> UserId"""
    return "".join(part[0].upper() + part[1:] for part in field.lower().split("_") if part)


@dataclass(frozen=True)
class FieldAccessors:
    """Operations of a model bound to an equality query on one field."""

    field: str
    label: str
    get: Callable[..., Any]
    list: Callable[..., Any]
    count: Callable[..., Any]
    update: Callable[..., Any]
    delete: Callable[..., Any]
    incr: Callable[..., Any]

    def items(self) -> list[tuple[str, Callable[..., Any]]]:
        """(method name, callable) pairs, e.g. ("get_by_user_id", ...)."""
        return [
            (f"{op}_by_{self.field}", getattr(self, op))
            for op in ("get", "list", "count", "update", "delete", "incr")
        ]


def build_accessors(model: Any, field: str) -> FieldAccessors:
    label = hum_name(field)

    def by(value: Any, op: str) -> dict:
        if value is None:
            raise ValidationFailed([MissingRequiredField(field)])
        logger.debug("%s.%sBy%s()", model.table, op, label)
        return {field: value}

    def get_by(value):
        return model.get(by(value, "get"))

    def list_by(value, options=None):
        return model.list(by(value, "list"), options)

    def count_by(value):
        return model.count(by(value, "count"))

    def update_by(value, data):
        return model.update(by(value, "update"), data)

    def delete_by(value):
        return model.delete(by(value, "delete"))

    def incr_by(value, field_name, amount):
        return model.incr(by(value, "incr"), field_name, amount)

    accessors = FieldAccessors(
        field=field,
        label=label,
        get=get_by,
        list=list_by,
        count=count_by,
        update=update_by,
        delete=delete_by,
        incr=incr_by,
    )
    for name, fn in accessors.items():
        fn.__name__ = fn.__qualname__ = name
    return accessors
