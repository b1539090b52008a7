import inspect
from typing import Any, Callable

from tablegate.model.gateway import Model


def create(**options: Any) -> Model:
    """Build a Model from keyword configuration."""
    return Model(**options)


def extend(**options: Any) -> dict[str, Any]:
    """
    Build a Model and flatten it into a plain mapping of bound functions.

    Every public method of the model is included, along with the per-field
    accessors under names like "get_by_user_id". The model itself is
    available under "base".
    """
    base = create(**options)
    bag: dict[str, Callable[..., Any] | Model] = {
        name: method
        for name, method in inspect.getmembers(base, callable)
        if not name.startswith("_")
    }
    for accessors in base.accessors.values():
        bag.update(accessors.items())
    bag["base"] = base
    return bag
