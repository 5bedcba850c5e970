"""Domain entities for enumcache."""

from enumcache.core.entities.config import PRIMARY_KEY, EnumerationConfig
from enumcache.core.entities.query import (
    Fetch,
    Operator,
    OrderTerm,
    Predicate,
    QueryDescriptor,
    parse_order,
)
from enumcache.core.entities.record import Record, freeze_entity, get_attribute
from enumcache.core.entities.snapshot import CacheStatus, Snapshot

__all__ = [
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
    "freeze_entity",
    "get_attribute",
]
