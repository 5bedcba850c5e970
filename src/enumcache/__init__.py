"""enumcache - read-mostly cache for enumeration tables.

Serves lookups against small, rarely-changing reference tables (status
codes, genders, ...) from an immutable in-memory snapshot, and forwards
every query shape the snapshot cannot answer exactly to the real store.

Example with SQLite:
    import aiosqlite
    from enumcache import EnumerationCache, EnumerationConfig, QueryDescriptor
    from enumcache.infrastructure.stores.sqlite import SqliteStoreAdapter

    db = await aiosqlite.connect("app.db")
    statuses = EnumerationCache(
        SqliteStoreAdapter(db, table="statuses"),
        EnumerationConfig(order="name", hashed=("id", "code"), constantize="code"),
        entity_name="Status",
    )

    await statuses.get_all()                  # whole table, ordered by name
    await statuses.get_by("code", "active")   # index lookup
    await statuses.find_by_ids([1, 3])        # strict finder, argument order
    await statuses.resolve("ACTIVE")          # named constant

    # Arbitrary queries: answered from the snapshot only when exact
    await statuses.lookup(QueryDescriptor().where(code="active").first())
    await statuses.lookup(QueryDescriptor().order_by("id desc"))  # store

Per-type registry:
    from enumcache import cache_enumeration, get_enumeration_cache

    cache_enumeration(Status, SqliteStoreAdapter(db, "statuses"), order="name")
    active = await get_enumeration_cache(Status).resolve("ACTIVE")
"""

from enumcache.core.entities import (
    PRIMARY_KEY,
    CacheStatus,
    EnumerationConfig,
    Fetch,
    Operator,
    OrderTerm,
    Predicate,
    QueryDescriptor,
    Record,
    Snapshot,
    parse_order,
)
from enumcache.core.exceptions import (
    ConfigurationError,
    EnumCacheError,
    NotFoundError,
    UnknownNameError,
    UnsupportedQueryError,
)
from enumcache.core.interfaces import IStoreAdapter
from enumcache.core.services import (
    CacheCapabilities,
    CacheStore,
    Classification,
    ConstantRegistry,
    Decision,
    EnumerationCache,
    MissReason,
    Plan,
    QueryShapeClassifier,
)
from enumcache.infrastructure import InMemoryStoreAdapter
from enumcache.registry import (
    EnumerationRegistry,
    cache_enumeration,
    get_enumeration_cache,
    get_registry,
    reset_enumeration_caches,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Configuration
    "PRIMARY_KEY",
    "EnumerationConfig",
    # Query model
    "Fetch",
    "Operator",
    "OrderTerm",
    "Predicate",
    "QueryDescriptor",
    "parse_order",
    # Snapshot
    "CacheStatus",
    "Record",
    "Snapshot",
    # Errors
    "EnumCacheError",
    "ConfigurationError",
    "NotFoundError",
    "UnknownNameError",
    "UnsupportedQueryError",
    # Interfaces
    "IStoreAdapter",
    # Services
    "EnumerationCache",
    "CacheCapabilities",
    "CacheStore",
    "Classification",
    "Decision",
    "MissReason",
    "Plan",
    "QueryShapeClassifier",
    "ConstantRegistry",
    # Infrastructure implementations
    "InMemoryStoreAdapter",
    # Registry
    "EnumerationRegistry",
    "cache_enumeration",
    "get_enumeration_cache",
    "get_registry",
    "reset_enumeration_caches",
]
