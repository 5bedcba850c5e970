"""Core domain layer for enumcache."""

from enumcache.core.entities import (
    EnumerationConfig,
    QueryDescriptor,
    Record,
    Snapshot,
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
    CacheStore,
    ConstantRegistry,
    EnumerationCache,
    QueryShapeClassifier,
)

__all__ = [
    # Entities
    "EnumerationConfig",
    "QueryDescriptor",
    "Record",
    "Snapshot",
    # Exceptions
    "EnumCacheError",
    "ConfigurationError",
    "NotFoundError",
    "UnknownNameError",
    "UnsupportedQueryError",
    # Interfaces
    "IStoreAdapter",
    # Services
    "CacheStore",
    "ConstantRegistry",
    "EnumerationCache",
    "QueryShapeClassifier",
]
