"""Type guard functions for runtime type checking in sqlkit."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import msgspec

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

    from sqlkit.typing import DataclassProtocol, Renderable

__all__ = (
    "is_dataclass",
    "is_dataclass_instance",
    "is_expandable_argument",
    "is_mapping",
    "is_msgspec_struct",
    "is_renderable",
    "is_schema",
)

_EXPANDABLE_TYPES = (list, tuple, set, frozenset)


def is_dataclass_instance(obj: Any) -> "TypeGuard[DataclassProtocol]":
    """Check if an object is a dataclass instance.

    Args:
        obj: An object to check.

    Returns:
        True if the object is a dataclass instance.
    """
    return not isinstance(obj, type) and hasattr(type(obj), "__dataclass_fields__")


def is_dataclass(obj: Any) -> "TypeGuard[DataclassProtocol]":
    """Check if an object is a dataclass class or instance."""
    if isinstance(obj, type) and hasattr(obj, "__dataclass_fields__"):
        return True
    return is_dataclass_instance(obj)


def is_msgspec_struct(obj: Any) -> "TypeGuard[msgspec.Struct]":
    """Check if a value is a msgspec struct class or instance."""
    if isinstance(obj, type):
        return issubclass(obj, msgspec.Struct)
    return isinstance(obj, msgspec.Struct)


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    return isinstance(obj, Mapping)


def is_schema(obj: Any) -> bool:
    """Check if a type or value can be walked field by field by the row codec."""
    return is_dataclass(obj) or is_msgspec_struct(obj)


def is_renderable(obj: Any) -> "TypeGuard[Renderable]":
    """Check if an object implements the ``render()`` protocol."""
    return callable(getattr(obj, "render", None))


def is_expandable_argument(obj: Any) -> bool:
    """Check if a bound argument should be spliced into an IN list.

    Strings and bytes are sequences but are always bound as scalars.
    """
    return isinstance(obj, _EXPANDABLE_TYPES)
