"""Cache store - owns the immutable snapshot and its population."""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from enumcache.core.entities.config import EnumerationConfig
from enumcache.core.entities.query import OrderTerm, QueryDescriptor
from enumcache.core.entities.record import freeze_entity
from enumcache.core.entities.snapshot import CacheStatus, Snapshot
from enumcache.core.exceptions import ConfigurationError, NotFoundError
from enumcache.core.interfaces.store_adapter import IStoreAdapter
from enumcache.core.services.constant_registry import ConstantRegistry
from enumcache.utils.lookup import normalize_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheCapabilities:
    """What a cache store can currently answer.

    Attributes:
        status: Population status.
        order: Snapshot order terms.
        hashed: Attributes with an equality index.
        unique: Hashed attributes whose values are distinct in the
            snapshot (empty unless cached).
        key_types: Types of the indexed values per hashed attribute. An
            attribute without an entry accepts keys of any type.
    """

    status: CacheStatus
    order: tuple[OrderTerm, ...]
    hashed: frozenset[str]
    unique: frozenset[str] = frozenset()
    key_types: Mapping[str, frozenset[type]] = field(
        default_factory=lambda: MappingProxyType({})
    )


class CacheStore:
    """Holds the ordered snapshot and equality indices of one enumeration.

    Status moves UNCACHED -> CACHING -> CACHED once per population, and
    back to UNCACHED on ``reset``. The UNCACHED -> CACHING transition is a
    mutex-guarded compare-and-swap, so concurrent or nested ``populate``
    calls never fetch twice.

    While a population is in flight, readers bypass the snapshot and are
    served by the store adapter.
    """

    def __init__(
        self,
        adapter: IStoreAdapter,
        config: EnumerationConfig | None = None,
        constants: ConstantRegistry | None = None,
        entity_name: str = "entity",
    ) -> None:
        """Initialize the cache store.

        Args:
            adapter: The store adapter used to fetch the snapshot.
            config: Enumeration configuration. Uses defaults if not provided.
            constants: Optional constant registry filled on population.
            entity_name: Entity type name used in messages.
        """
        self._adapter = adapter
        self._config = config or EnumerationConfig()
        self._constants = constants
        self._entity_name = entity_name

        self._lock = threading.Lock()
        self._status = CacheStatus.UNCACHED
        self._snapshot: Snapshot | None = None
        self._generation = 0

    @property
    def config(self) -> EnumerationConfig:
        return self._config

    @property
    def status(self) -> CacheStatus:
        return self._status

    @property
    def capabilities(self) -> CacheCapabilities:
        """Get the current capabilities of this store."""
        with self._lock:
            status = self._status
            snapshot = self._snapshot
        return CacheCapabilities(
            status=status,
            order=self._config.order_terms,
            hashed=frozenset(self._config.hashed),
            unique=snapshot.unique if snapshot is not None else frozenset(),
            key_types=(
                snapshot.key_types if snapshot is not None else MappingProxyType({})
            ),
        )

    def is_cached(self) -> bool:
        return self._status is CacheStatus.CACHED

    def is_caching(self) -> bool:
        return self._status is CacheStatus.CACHING

    async def populate(self) -> bool:
        """Fetch and index the full table.

        Returns:
            True if this call populated the cache; False if it was already
            cached, another population is in flight, or a reset discarded
            the result.

        Raises:
            Any error raised by the store adapter, or ConfigurationError
            for entities lacking a hashed attribute. Status reverts to
            UNCACHED in both cases.
        """
        with self._lock:
            if self._status is not CacheStatus.UNCACHED:
                return False
            self._status = CacheStatus.CACHING
            generation = self._generation

        logger.info("Populating %s cache", self._entity_name)
        try:
            rows = await self._adapter.execute_ordered_query(self._config.order_terms)
            snapshot = Snapshot.build(rows, self._config.hashed, self._entity_name)
            constants = (
                self._constants.build(snapshot.entities)
                if self._constants is not None
                else None
            )
        except BaseException:
            with self._lock:
                if self._generation == generation:
                    self._status = CacheStatus.UNCACHED
            raise

        with self._lock:
            if self._generation != generation:
                logger.warning(
                    "Discarding %s snapshot: cache was reset during population",
                    self._entity_name,
                )
                return False
            self._snapshot = snapshot
            if constants is not None and self._constants is not None:
                self._constants.install(constants)
            self._status = CacheStatus.CACHED

        logger.info("Cached %d %s entities", len(snapshot), self._entity_name)
        return True

    def reset(self) -> None:
        """Discard the snapshot, indices and constants."""
        with self._lock:
            self._generation += 1
            self._status = CacheStatus.UNCACHED
            self._snapshot = None
            if self._constants is not None:
                self._constants.clear()
        logger.debug("Reset %s cache", self._entity_name)

    async def snapshot(self) -> Snapshot | None:
        """Return the published snapshot, populating first if needed.

        Returns None while another population is in flight.
        """
        snapshot = self._snapshot
        if snapshot is None:
            await self.populate()
            snapshot = self._snapshot
        return snapshot

    async def get_all(self) -> tuple[Any, ...]:
        """Return all entities in the configured order (read-only)."""
        snapshot = await self.snapshot()
        if snapshot is not None:
            return snapshot.entities

        logger.debug("Bypassing %s cache for get_all", self._entity_name)
        return await self._fetch_all()

    async def bypass_entities(self) -> tuple[Any, ...] | None:
        """Fetch every entity from the store while a population is in flight.

        Returns:
            The entities in the configured order, or None when no
            population is in flight.
        """
        if self._status is not CacheStatus.CACHING:
            return None
        logger.debug("Bypassing %s cache during population", self._entity_name)
        return await self._fetch_all()

    async def get_first(self) -> Any | None:
        """Return the first entity in the configured order, or None."""
        entities = await self.get_all()
        return entities[0] if entities else None

    async def get_by(self, attribute: str, key: Any) -> Any:
        """Return the entity whose ``attribute`` equals ``key``.

        Args:
            attribute: A hashed attribute.
            key: The value to look up; ids are coerced to int.

        Returns:
            The entity.

        Raises:
            ConfigurationError: If ``attribute`` is not hashed.
            NotFoundError: If no entity matches.
        """
        if attribute not in self._config.hashed:
            raise ConfigurationError(
                f"{self._entity_name}.{attribute} is not a hashed attribute; "
                f"hashed attributes are {list(self._config.hashed)}"
            )

        normalized = normalize_key(attribute, key)
        snapshot = await self.snapshot()
        if snapshot is not None:
            entity = snapshot.lookup(attribute, normalized) if normalized is not None else None
        else:
            entity = await self._bypass_lookup(attribute, normalized)

        if entity is None:
            raise NotFoundError.for_key(self._entity_name, attribute, key)
        return entity

    @property
    def indices(self) -> Mapping[str, Mapping[Any, Any]]:
        """Read-only indices of the published snapshot (empty if uncached)."""
        snapshot = self._snapshot
        return snapshot.indices if snapshot is not None else {}

    async def _fetch_all(self) -> tuple[Any, ...]:
        rows = await self._adapter.execute_ordered_query(self._config.order_terms)
        return tuple(freeze_entity(row) for row in rows)

    async def _bypass_lookup(self, attribute: str, key: Any) -> Any | None:
        if key is None:
            return None
        logger.debug("Bypassing %s cache for get_by(%s)", self._entity_name, attribute)
        descriptor = QueryDescriptor().where(**{attribute: key}).first()
        row = await self._adapter.execute_query(descriptor)
        return freeze_entity(row) if row is not None else None
