"""Store adapters for enumcache.

The SQLite adapter lives in ``enumcache.infrastructure.stores.sqlite`` and
needs the ``sqlite`` extra; it is not imported here.
"""

from enumcache.infrastructure.stores.memory import InMemoryStoreAdapter

__all__ = [
    "InMemoryStoreAdapter",
]
