"""
Field

Validation predicates for the fields of a model's table.
"""

from tablegate.field.registry import FieldRegistry, FieldSpec

__all__ = ["FieldRegistry", "FieldSpec"]
