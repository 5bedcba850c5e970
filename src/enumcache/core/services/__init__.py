"""Domain services for enumcache."""

from enumcache.core.services.cache_store import CacheCapabilities, CacheStore
from enumcache.core.services.classifier import (
    Classification,
    Decision,
    MissReason,
    Plan,
    QueryShapeClassifier,
)
from enumcache.core.services.constant_registry import ConstantRegistry, constant_name
from enumcache.core.services.enumeration_cache import EnumerationCache

__all__ = [
    "EnumerationCache",
    # Snapshot store
    "CacheCapabilities",
    "CacheStore",
    # Classification
    "Classification",
    "Decision",
    "MissReason",
    "Plan",
    "QueryShapeClassifier",
    # Constants
    "ConstantRegistry",
    "constant_name",
]
