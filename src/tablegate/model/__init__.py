from tablegate.model.accessors import FieldAccessors
from tablegate.model.factory import create, extend
from tablegate.model.gateway import Model
from tablegate.model.options import ListOptions, format_list_options

__all__ = [
    "FieldAccessors",
    "ListOptions",
    "Model",
    "create",
    "extend",
    "format_list_options",
]
