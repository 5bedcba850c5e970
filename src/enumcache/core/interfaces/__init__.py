"""Core interfaces (Protocol classes) for enumcache."""

from enumcache.core.interfaces.store_adapter import IStoreAdapter

__all__ = [
    "IStoreAdapter",
]
