"""Registry of enumeration caches, one per entity type.

A cache is wired once per entity type at configuration time and looked
up by that type afterwards. The module-level functions operate on a
default registry.

Example:
    class Gender:
        ...

    cache_enumeration(Gender, SqliteStoreAdapter(db, "genders"), order="name")

    male = await get_enumeration_cache(Gender).resolve("MALE")
"""

from collections.abc import Iterator
from typing import Any

from enumcache.core.entities.config import EnumerationConfig
from enumcache.core.exceptions import ConfigurationError
from enumcache.core.interfaces.store_adapter import IStoreAdapter
from enumcache.core.services.enumeration_cache import EnumerationCache

EntityType = type | str


def entity_key(entity_type: EntityType) -> str:
    """Return the registry identifier of an entity type."""
    if isinstance(entity_type, str):
        return entity_type
    return f"{entity_type.__module__}.{entity_type.__qualname__}"


def _entity_name(entity_type: EntityType) -> str:
    if isinstance(entity_type, str):
        return entity_type.rsplit(".", 1)[-1]
    return entity_type.__name__


class EnumerationRegistry:
    """Holds one EnumerationCache per entity type identifier."""

    def __init__(self) -> None:
        self._caches: dict[str, EnumerationCache] = {}

    def register(
        self,
        entity_type: EntityType,
        adapter: IStoreAdapter,
        replace: bool = False,
        **options: Any,
    ) -> EnumerationCache:
        """Wire a cache for ``entity_type``.

        Args:
            entity_type: A class or a string identifier.
            adapter: The store adapter for the entity's table.
            replace: Replace an existing registration instead of failing.
            **options: ``order``, ``hashed`` and ``constantize``.

        Returns:
            The new cache.

        Raises:
            ConfigurationError: If an option is invalid, or the type is
                already registered and ``replace`` is False.
        """
        key = entity_key(entity_type)
        if key in self._caches and not replace:
            raise ConfigurationError(f"enumeration cache for {key} is already configured")

        cache = EnumerationCache(
            adapter,
            EnumerationConfig.from_options(options),
            entity_name=_entity_name(entity_type),
        )
        self._caches[key] = cache
        return cache

    def get(self, entity_type: EntityType) -> EnumerationCache:
        """Get the cache of an entity type.

        Raises:
            ConfigurationError: If no cache was configured for it.
        """
        key = entity_key(entity_type)
        try:
            return self._caches[key]
        except KeyError:
            raise ConfigurationError(
                f"no enumeration cache configured for {key}"
            ) from None

    def unregister(self, entity_type: EntityType) -> None:
        self._caches.pop(entity_key(entity_type), None)

    def reset_all(self) -> None:
        """Reset every registered cache; configuration is kept."""
        for cache in self._caches.values():
            cache.reset()

    def clear(self) -> None:
        """Drop every registration."""
        self._caches.clear()

    def __contains__(self, entity_type: object) -> bool:
        if not isinstance(entity_type, (type, str)):
            return False
        return entity_key(entity_type) in self._caches

    def __iter__(self) -> Iterator[str]:
        return iter(self._caches)

    def __len__(self) -> int:
        return len(self._caches)


# Module-level default registry
_registry = EnumerationRegistry()


def get_registry() -> EnumerationRegistry:
    return _registry


def cache_enumeration(
    entity_type: EntityType,
    adapter: IStoreAdapter,
    **options: Any,
) -> EnumerationCache:
    """Configure the cache of ``entity_type`` in the default registry.

    Args:
        entity_type: A class or a string identifier.
        adapter: The store adapter for the entity's table.
        **options: ``order`` (default ``"id"``), ``hashed`` (default
            ``["id", "name"]``, ``id`` always added), ``constantize``
            (default ``"name"``; None or False disables constants), and
            ``replace``.

    Returns:
        The configured cache.

    Raises:
        ConfigurationError: On unknown or invalid options.
    """
    return _registry.register(entity_type, adapter, **options)


def get_enumeration_cache(entity_type: EntityType) -> EnumerationCache:
    """Get the cache configured for ``entity_type``."""
    return _registry.get(entity_type)


def reset_enumeration_caches() -> None:
    """Reset every cache in the default registry."""
    _registry.reset_all()
