"""Named constants for cached enumeration entities."""

import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from enumcache.core.entities.config import Constantize
from enumcache.core.entities.record import get_attribute
from enumcache.core.exceptions import ConfigurationError, UnknownNameError

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"\W+")


def constant_name(value: Any) -> str:
    """Derive a constant name from an attribute value.

    >>> constant_name("no such name")
    'NO_SUCH_NAME'
    """
    return _NON_WORD.sub("_", str(value).strip()).strip("_").upper()


class ConstantRegistry:
    """Maps upper-cased names to cached entities.

    Names are computed per entity from the configured ``constantize``
    attribute or naming function when the cache is populated. Resolution
    of an unknown name triggers one population attempt and retries. While
    another caller holds the population, names are resolved against the
    entities fetched from the store.

    Registered names are also readable as attributes once populated::

        cache.constants.ACTIVE
    """

    def __init__(
        self,
        constantize: Constantize,
        entity_name: str = "entity",
        populate: Callable[[], Awaitable[bool]] | None = None,
        bypass: Callable[[], Awaitable[Iterable[Any] | None]] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            constantize: Attribute name or naming function.
            entity_name: Entity type name used in messages.
            populate: Coroutine function that populates the owning cache.
            bypass: Coroutine function returning the entities from the store
                while a population is in flight, or None otherwise.
        """
        if constantize is None:
            raise ConfigurationError("constantize is disabled for this enumeration")
        self._constantize = constantize
        self._entity_name = entity_name
        self._populate = populate
        self._bypass = bypass
        self._constants: Mapping[str, Any] = MappingProxyType({})

    def bind(
        self,
        populate: Callable[[], Awaitable[bool]],
        bypass: Callable[[], Awaitable[Iterable[Any] | None]] | None = None,
    ) -> None:
        """Attach the coroutines used on resolution misses."""
        self._populate = populate
        self._bypass = bypass

    def name_for(self, entity: Any) -> str | None:
        """Compute the constant name of an entity, or None if it has none."""
        if callable(self._constantize):
            value = self._constantize(entity)
        else:
            value = get_attribute(entity, self._constantize)
        if value is None:
            return None
        return constant_name(value) or None

    def build(self, entities: Iterable[Any]) -> Mapping[str, Any]:
        """Compute the name mapping for ``entities`` without installing it.

        Later entities win on name collisions.
        """
        constants: dict[str, Any] = {}
        for entity in entities:
            name = self.name_for(entity)
            if name is None:
                continue
            if name in constants:
                logger.warning(
                    "Constant %s::%s is defined twice; later entity wins",
                    self._entity_name,
                    name,
                )
            constants[name] = entity
        return MappingProxyType(constants)

    def install(self, constants: Mapping[str, Any]) -> None:
        self._constants = constants

    def register(self, entities: Iterable[Any]) -> None:
        """Populate the name mapping from a snapshot."""
        self.install(self.build(entities))

    def clear(self) -> None:
        self._constants = MappingProxyType({})

    def get(self, name: str, default: Any = None) -> Any:
        """Return the entity registered under ``name`` without populating."""
        return self._constants.get(constant_name(name), default)

    async def resolve(self, name: str) -> Any:
        """Resolve a constant name to its entity.

        On a first miss the owning cache is populated once and the lookup
        retried. If another caller is populating, the name is looked up in
        the entities fetched from the store instead.

        Args:
            name: Constant name; case does not matter.

        Returns:
            The entity.

        Raises:
            UnknownNameError: If the name is still undefined.
        """
        key = constant_name(name)
        entity = self._constants.get(key)
        if entity is not None:
            return entity

        if self._populate is not None:
            populated = await self._populate()
            entity = self._constants.get(key)
            if entity is None and not populated and self._bypass is not None:
                entity = await self._resolve_bypassing(key, self._bypass)
            if entity is not None:
                return entity

        raise UnknownNameError(name, self._entity_name)

    async def _resolve_bypassing(
        self,
        key: str,
        bypass: Callable[[], Awaitable[Iterable[Any] | None]],
    ) -> Any | None:
        entities = await bypass()
        if entities is None:
            # The population finished in the meantime.
            return self._constants.get(key)
        found = None
        for entity in entities:
            if self.name_for(entity) == key:
                found = entity
        return found

    @property
    def names(self) -> list[str]:
        return list(self._constants)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and constant_name(name) in self._constants

    def __iter__(self) -> Iterator[str]:
        return iter(self._constants)

    def __len__(self) -> int:
        return len(self._constants)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._constants[constant_name(name)]
        except KeyError:
            raise UnknownNameError(name, self._entity_name) from None
