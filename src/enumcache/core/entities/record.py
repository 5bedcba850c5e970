"""Immutable entity record."""

import dataclasses
from collections.abc import Iterator, Mapping
from typing import Any


class Record(Mapping[str, Any]):
    """Read-only row of an enumeration table.

    Behaves as a mapping and exposes every column as an attribute.
    Assigning or deleting attributes raises AttributeError.

    Example:
        >>> r = Record(id=1, name="one")
        >>> r.name, r["id"]
        ('one', 1)
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None, /, **fields: Any) -> None:
        values = dict(data or {})
        values.update(fields)
        object.__setattr__(self, "_data", values)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_data":
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot assign to field {name!r} of a frozen record")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete field {name!r} of a frozen record")

    def __hash__(self) -> int:
        return hash(tuple(self._data.items()))

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._data.items())
        return f"Record({fields})"

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self._data,))


def freeze_entity(entity: Any) -> Any:
    """Return an immutable version of an entity fetched from a store.

    Records, frozen dataclasses and named tuples are already immutable and
    are returned unchanged. Mappings and plain objects are copied into a
    Record.

    Args:
        entity: The entity as returned by a store adapter.

    Returns:
        An immutable entity.

    Raises:
        TypeError: If the entity cannot be frozen.
    """
    if isinstance(entity, Record):
        return entity
    if isinstance(entity, Mapping):
        return Record(entity)
    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        if type(entity).__dataclass_params__.frozen:  # type: ignore[attr-defined]
            return entity
        return Record(dataclasses.asdict(entity))
    if isinstance(entity, tuple) and hasattr(entity, "_fields"):
        return entity
    if hasattr(entity, "__dict__"):
        return Record(vars(entity))
    raise TypeError(f"cannot freeze entity of type {type(entity).__name__}")


def get_attribute(entity: Any, attribute: str) -> Any:
    """Read an attribute from a mapping-like or object entity.

    Raises:
        AttributeError: If the entity has no such attribute.
    """
    if isinstance(entity, Mapping):
        try:
            return entity[attribute]
        except KeyError:
            raise AttributeError(
                f"entity has no attribute {attribute!r}"
            ) from None
    return getattr(entity, attribute)
