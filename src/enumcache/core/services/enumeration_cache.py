"""Enumeration cache - main entry point for cached enumeration lookups."""

import logging
from collections.abc import Mapping
from typing import Any

from enumcache.core.entities.config import PRIMARY_KEY, EnumerationConfig
from enumcache.core.entities.query import Fetch, QueryDescriptor
from enumcache.core.entities.snapshot import CacheStatus
from enumcache.core.exceptions import ConfigurationError, NotFoundError
from enumcache.core.interfaces.store_adapter import IStoreAdapter
from enumcache.core.services.cache_store import CacheStore
from enumcache.core.services.classifier import (
    Classification,
    MissReason,
    Plan,
    QueryShapeClassifier,
)
from enumcache.core.services.constant_registry import ConstantRegistry
from enumcache.utils.lookup import find_strict

logger = logging.getLogger(__name__)


class EnumerationCache:
    """Read-mostly cache in front of the store for one enumeration table.

    Every lookup goes through ``lookup``: the classifier decides whether
    the query can be answered from the snapshot; if not, the descriptor
    is forwarded unchanged to the store adapter and its result (or error)
    is returned as is.

    Example:
        cache = EnumerationCache(
            SqliteStoreAdapter(db, table="statuses"),
            EnumerationConfig(order="name", hashed=("id", "code")),
            entity_name="Status",
        )
        active = await cache.get_by("code", "active")
        statuses = await cache.find_by_ids([1, 3])
        draft = await cache.resolve("DRAFT")
    """

    def __init__(
        self,
        adapter: IStoreAdapter,
        config: EnumerationConfig | None = None,
        entity_name: str = "entity",
        classifier: QueryShapeClassifier | None = None,
    ) -> None:
        """Initialize the enumeration cache.

        Args:
            adapter: The store adapter behind the cache.
            config: Optional configuration. Uses defaults if not provided.
            entity_name: Entity type name used in messages and logs.
            classifier: Optional classifier. A default one is created if
                not provided.
        """
        self._adapter = adapter
        self._config = config or EnumerationConfig()
        self._entity_name = entity_name
        self._classifier = classifier or QueryShapeClassifier()

        self._constants: ConstantRegistry | None = None
        if self._config.constants_enabled:
            self._constants = ConstantRegistry(
                self._config.constantize, entity_name=entity_name
            )

        self._store = CacheStore(
            adapter,
            self._config,
            constants=self._constants,
            entity_name=entity_name,
        )
        if self._constants is not None:
            self._constants.bind(self._store.populate, self._store.bypass_entities)

        # Statistics
        self._hits = 0
        self._misses = 0
        self._bypasses = 0

    @classmethod
    def from_options(
        cls,
        adapter: IStoreAdapter,
        options: Mapping[str, Any] | None = None,
        entity_name: str = "entity",
        **kwargs: Any,
    ) -> "EnumerationCache":
        """Create a cache from raw options (``order``, ``hashed``, ``constantize``).

        Raises:
            ConfigurationError: If an option is unknown or invalid.
        """
        return cls(
            adapter,
            EnumerationConfig.from_options(options, **kwargs),
            entity_name=entity_name,
        )

    @property
    def config(self) -> EnumerationConfig:
        return self._config

    @property
    def entity_name(self) -> str:
        return self._entity_name

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def status(self) -> CacheStatus:
        return self._store.status

    @property
    def constants(self) -> ConstantRegistry:
        """Get the constant registry.

        Raises:
            ConfigurationError: If constants are disabled.
        """
        if self._constants is None:
            raise ConfigurationError(
                f"constants are disabled for {self._entity_name}"
            )
        return self._constants

    @property
    def stats(self) -> dict[str, int]:
        """Get lookup statistics.

        Returns:
            Dictionary with hits, misses, bypasses and total lookups.
        """
        return {
            "hits": self._hits,
            "misses": self._misses,
            "bypasses": self._bypasses,
            "total": self._hits + self._misses,
        }

    def clear_stats(self) -> None:
        self._hits = 0
        self._misses = 0
        self._bypasses = 0

    def classify(self, descriptor: QueryDescriptor) -> Classification:
        """Classify a descriptor against the current cache state."""
        return self._classifier.classify(descriptor, self._store.capabilities)

    async def lookup(self, descriptor: QueryDescriptor) -> Any:
        """Answer a query from the cache when possible, else from the store.

        Args:
            descriptor: The query to answer.

        Returns:
            The result shaped by ``descriptor.fetch``.

        Raises:
            NotFoundError: For strict finders with a missing key.
            Any error raised by the store adapter on a MISS.
        """
        classification = self.classify(descriptor)

        if (
            classification.reason is MissReason.NOT_CACHED
            and self._store.status is CacheStatus.UNCACHED
            and self._classifier.is_cacheable(descriptor, self._store.capabilities)
        ):
            await self._store.populate()
            classification = self.classify(descriptor)

        logger.debug(
            "%s lookup [%s] -> %s",
            self._entity_name,
            descriptor.describe(),
            classification,
        )

        if classification.is_hit:
            self._hits += 1
            return await self._answer(descriptor, classification)

        self._misses += 1
        if classification.reason is MissReason.NOT_CACHED:
            self._bypasses += 1
        return await self._adapter.execute_query(descriptor)

    async def _answer(
        self,
        descriptor: QueryDescriptor,
        classification: Classification,
    ) -> Any:
        plan = classification.plan
        attribute = classification.attribute

        if plan is Plan.EMPTY:
            return []

        if plan is Plan.ALL:
            return list(await self._store.get_all())

        if plan is Plan.FIRST:
            first = await self._store.get_first()
            if descriptor.fetch is Fetch.FIRST:
                return first
            return [first] if first is not None else []

        if attribute is None:
            return await self._adapter.execute_query(descriptor)
        if descriptor.fetch is Fetch.FIND:
            snapshot = await self._store.snapshot()
            if snapshot is None:
                self._bypasses += 1
                return await self._adapter.execute_query(descriptor)
            return find_strict(
                lambda key: snapshot.lookup(attribute, key),
                attribute,
                classification.key,
                self._entity_name,
            )

        # Where-style lookup on a unique attribute with a key of an indexed type.
        snapshot = await self._store.snapshot()
        if snapshot is None:
            self._bypasses += 1
            return await self._adapter.execute_query(descriptor)
        entity = snapshot.lookup(attribute, classification.key)
        if descriptor.fetch is Fetch.FIRST:
            return entity
        return [entity] if entity is not None else []

    async def get_all(self) -> tuple[Any, ...]:
        """Return all entities in the configured order (read-only)."""
        return await self._store.get_all()

    async def get_first(self) -> Any | None:
        """Return the first entity in the configured order, or None."""
        return await self._store.get_first()

    async def get_by(self, attribute: str, key: Any) -> Any:
        """Return the entity whose hashed ``attribute`` equals ``key``.

        Raises:
            ConfigurationError: If ``attribute`` is not hashed.
            NotFoundError: If no entity matches.
        """
        return await self._store.get_by(attribute, key)

    async def find_by(self, attribute: str, key: Any) -> Any | None:
        """Like ``get_by`` but return None when no entity matches."""
        try:
            return await self._store.get_by(attribute, key)
        except NotFoundError:
            return None

    async def find_by_ids(self, ids: Any) -> Any:
        """Find entities by id, preserving the shape of the argument.

        A scalar id returns one entity; a list returns a list in argument
        order. An empty list returns an empty list without touching the
        cache or the store.

        Raises:
            NotFoundError: If any id is missing.
        """
        if isinstance(ids, (list, tuple)) and len(ids) == 0:
            return []
        return await self.lookup(QueryDescriptor().find(ids, attribute=PRIMARY_KEY))

    async def resolve(self, name: str) -> Any:
        """Resolve a constant name (case-insensitive) to its entity.

        Raises:
            ConfigurationError: If constants are disabled.
            UnknownNameError: If the name is undefined after populating.
        """
        return await self.constants.resolve(name)

    async def populate(self) -> bool:
        """Populate the cache; False if already cached or in progress."""
        return await self._store.populate()

    def is_populated(self) -> bool:
        return self._store.is_cached()

    def is_cached(self) -> bool:
        return self._store.is_cached()

    def is_caching(self) -> bool:
        return self._store.is_caching()

    def reset(self) -> None:
        """Discard the snapshot; the next lookup repopulates."""
        self._store.reset()

    async def refresh(self) -> bool:
        """Reset and immediately repopulate the cache."""
        self._store.reset()
        return await self._store.populate()

    def __repr__(self) -> str:
        return (
            f"EnumerationCache(entity={self._entity_name!r}, "
            f"status={self.status.value!r})"
        )
