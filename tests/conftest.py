"""Pytest configuration for enumcache tests."""

import pytest

from enumcache import EnumerationCache, EnumerationConfig, InMemoryStoreAdapter

MODEL_ROWS = [
    {"id": 1, "name": "one", "other": "eins"},
    {"id": 2, "name": "two", "other": "zwei"},
    {"id": 3, "name": "three", "other": "drei"},
]


@pytest.fixture(autouse=True)
def reset_default_registry():
    """Restore the default registry after each test."""
    import enumcache.registry

    original = dict(enumcache.registry._registry._caches)

    yield

    enumcache.registry._registry._caches.clear()
    enumcache.registry._registry._caches.update(original)


@pytest.fixture
def model_rows() -> list[dict]:
    """Rows of the model enumeration table."""
    return [dict(row) for row in MODEL_ROWS]


@pytest.fixture
def store(model_rows: list[dict]) -> InMemoryStoreAdapter:
    """Create an in-memory store with the three model rows."""
    return InMemoryStoreAdapter(model_rows, entity_name="Model")


@pytest.fixture
def cache(store: InMemoryStoreAdapter) -> EnumerationCache:
    """Create an enumeration cache with default configuration."""
    return EnumerationCache(store, EnumerationConfig(), entity_name="Model")


@pytest.fixture
def by_name_cache(store: InMemoryStoreAdapter) -> EnumerationCache:
    """Create a cache ordered by name with an index on ``other``."""
    return EnumerationCache(
        store,
        EnumerationConfig(order="name", hashed=("id", "other"), constantize="name"),
        entity_name="Model",
    )
