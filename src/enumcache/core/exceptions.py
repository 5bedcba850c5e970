"""Exceptions raised by enumcache."""

from typing import Any


class EnumCacheError(Exception):
    """Base class for all enumcache errors."""

    pass


class ConfigurationError(EnumCacheError, ValueError):
    """Raised when an enumeration cache is wired with invalid options.

    Fatal to the cache of that entity type; never recovered at runtime.
    """

    pass


class NotFoundError(EnumCacheError, LookupError):
    """Raised by strict lookups when no entity matches the requested key."""

    def __init__(
        self,
        message: str,
        entity: str | None = None,
        attribute: str | None = None,
        key: Any = None,
    ) -> None:
        super().__init__(message)
        self.entity = entity
        self.attribute = attribute
        self.key = key

    @classmethod
    def for_key(cls, entity: str, attribute: str, key: Any) -> "NotFoundError":
        """Build the error for a single missing key."""
        if attribute == "id":
            message = f"Couldn't find {entity} with ID={key}"
        else:
            message = f"Couldn't find {entity} with {attribute}={key!r}"
        return cls(message, entity=entity, attribute=attribute, key=key)

    @classmethod
    def without_key(cls, entity: str, attribute: str = "id") -> "NotFoundError":
        """Build the error for a strict lookup called without any usable key."""
        label = "an ID" if attribute == "id" else f"a {attribute}"
        return cls(
            f"Couldn't find {entity} without {label}",
            entity=entity,
            attribute=attribute,
        )


class UnknownNameError(EnumCacheError, AttributeError):
    """Raised when a constant name does not resolve to a cached entity."""

    def __init__(self, name: str, entity: str | None = None) -> None:
        owner = f"{entity}::" if entity else ""
        super().__init__(f"uninitialized constant {owner}{name}")
        self.name = name
        self.entity = entity


class UnsupportedQueryError(EnumCacheError):
    """Raised by a store adapter for a query shape it cannot execute."""

    pass
