"""
Uniform access to the data values a meta graph mirrors.

Object-shaped values are dicts or dataclass instances, collection-shaped
values are lists, everything else is a primitive leaf.
"""

from dataclasses import is_dataclass
from typing import Any

PRIMITIVE_TYPES = (str, int, float, bool)


def is_collection_value(value: Any) -> bool:
    return isinstance(value, list)


def is_object_value(value: Any) -> bool:
    """True for values that can carry a backlink to a meta node."""
    if isinstance(value, (dict, list)):
        return True
    return is_dataclass(value) and not isinstance(value, type)


def is_primitive_value(value: Any) -> bool:
    """True for populated scalar leaves (None is absent, not primitive)."""
    return isinstance(value, PRIMITIVE_TYPES)


def get_field(container: Any, key: str) -> Any:
    """Read a field from an object-shaped value; absent fields read as None."""
    if isinstance(container, dict):
        return container.get(key)
    if is_dataclass(container) and not isinstance(container, type):
        return getattr(container, key, None)
    return None


def has_field(container: Any, key: str) -> bool:
    if isinstance(container, dict):
        return key in container
    return hasattr(container, key)


def set_field(container: Any, key: str, value: Any) -> None:
    if isinstance(container, dict):
        container[key] = value
    else:
        setattr(container, key, value)
