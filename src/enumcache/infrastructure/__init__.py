"""Infrastructure layer implementations for enumcache."""

from enumcache.infrastructure.stores import InMemoryStoreAdapter

__all__ = [
    "InMemoryStoreAdapter",
]
