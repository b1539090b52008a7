import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterator

import pandas as pd

from tablegate.errors import FieldError, FieldNotExists, InvalidFieldValue

logger = logging.getLogger(__name__)

Predicate = Callable[[Any], bool]


def is_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_number(value: Any) -> bool:
    """Numbers and numeric strings that are not NaN."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return not (isinstance(value, (float, Decimal)) and math.isnan(value))
    if isinstance(value, str) and value.strip():
        try:
            return not math.isnan(float(value))
        except ValueError:
            return False
    return False


# pandas resolves these against the clock; they name no fixed point in time
RELATIVE_DATES = frozenset({"now", "today", "tomorrow", "yesterday"})


def is_date(value: Any) -> bool:
    """Strings that parse into a real point in time."""
    if not isinstance(value, str):
        return False
    if value.strip().lower() in RELATIVE_DATES:
        return False
    try:
        parsed = pd.to_datetime(value)
    except (ValueError, OverflowError, TypeError):
        return False
    return parsed is not pd.NaT


def is_anything(value: Any) -> bool:
    return True


TYPE_PREDICATES: dict[str, Predicate] = {
    "string": is_string,
    "number": is_number,
    "date": is_date,
    "*": is_anything,
}


@dataclass(frozen=True)
class FieldSpec:
    """A field's validator resolved into a single predicate."""

    kind: str  # "type", "pattern" or "predicate"
    source: Any
    predicate: Predicate

    @classmethod
    def resolve(cls, spec: Any) -> "FieldSpec":
        if isinstance(spec, str):
            if spec not in TYPE_PREDICATES:
                raise ValueError(
                    f"Unknown field type {spec!r}. Valid: {list(TYPE_PREDICATES.keys())}"
                )
            return cls("type", spec, TYPE_PREDICATES[spec])
        if isinstance(spec, re.Pattern):
            return cls("pattern", spec, lambda v: spec.search(str(v)) is not None)
        if callable(spec):
            return cls("predicate", spec, lambda v: bool(spec(v)))
        raise TypeError("Each field spec must be a type name, a compiled pattern or a callable")


class FieldRegistry:
    """Per-model mapping of field name to validation predicate."""

    def __init__(self, fields: dict[str, Any] | None = None):
        self._specs: dict[str, FieldSpec] = {}
        for name, spec in (fields or {}).items():
            self.register(name, spec)

    def register(self, name: str, spec: Any) -> FieldSpec:
        resolved = FieldSpec.resolve(spec)
        self._specs[name] = resolved
        return resolved

    def spec(self, name: str) -> FieldSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise FieldNotExists(name) from None

    def validate(self, name: str, value: Any) -> bool:
        return self.spec(name).predicate(value)

    def filter(self, record: dict | None) -> dict:
        """Keep only registered fields, values unchanged."""
        return {k: v for k, v in (record or {}).items() if k in self._specs}

    def validate_all(self, record: dict) -> list[FieldError] | None:
        """
        Check every field of a record.

        Returns None when everything is valid, otherwise one error per
        failing field in record order.
        """
        errors: list[FieldError] = []
        for name, value in record.items():
            try:
                predicate = self.spec(name).predicate
            except FieldNotExists as err:
                errors.append(err)
                continue
            try:
                ok = predicate(value)
            except Exception:
                # a predicate that cannot handle the value rejects it
                logger.debug("predicate for %s raised on %r", name, value, exc_info=True)
                ok = False
            if not ok:
                errors.append(InvalidFieldValue(name, value))
        return errors or None

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)
