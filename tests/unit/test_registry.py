"""Tests for the enumeration cache registry."""

import pytest

from enumcache import (
    ConfigurationError,
    EnumerationRegistry,
    InMemoryStoreAdapter,
    cache_enumeration,
    get_enumeration_cache,
    get_registry,
    reset_enumeration_caches,
)
from enumcache.registry import entity_key


class Gender:
    """Entity type used as registry key."""


class TestEnumerationRegistry:
    """Tests for EnumerationRegistry."""

    def test_register_and_get(self, store: InMemoryStoreAdapter) -> None:
        registry = EnumerationRegistry()

        cache = registry.register(Gender, store, order="name")

        assert registry.get(Gender) is cache
        assert cache.entity_name == "Gender"
        assert cache.config.order == "name"
        assert Gender in registry
        assert len(registry) == 1

    def test_string_identifier(self, store: InMemoryStoreAdapter) -> None:
        registry = EnumerationRegistry()

        cache = registry.register("billing.Currency", store)

        assert registry.get("billing.Currency") is cache
        assert cache.entity_name == "Currency"

    def test_entity_key_uses_qualified_name(self) -> None:
        assert entity_key(Gender) == f"{__name__}.Gender"

    def test_get_unconfigured(self) -> None:
        registry = EnumerationRegistry()

        with pytest.raises(ConfigurationError, match="no enumeration cache"):
            registry.get(Gender)

    def test_register_twice(self, store: InMemoryStoreAdapter) -> None:
        """Test that a second registration requires replace=True."""
        registry = EnumerationRegistry()
        first = registry.register(Gender, store)

        with pytest.raises(ConfigurationError, match="already configured"):
            registry.register(Gender, store)

        second = registry.register(Gender, store, replace=True)
        assert second is not first
        assert registry.get(Gender) is second

    def test_invalid_options(self, store: InMemoryStoreAdapter) -> None:
        registry = EnumerationRegistry()

        with pytest.raises(ConfigurationError, match="unexpected parameters"):
            registry.register(Gender, store, expires_in=60)

        assert Gender not in registry

    @pytest.mark.asyncio
    async def test_reset_all(self, store: InMemoryStoreAdapter) -> None:
        """Test that reset_all keeps registrations but drops snapshots."""
        registry = EnumerationRegistry()
        cache = registry.register(Gender, store)
        await cache.populate()

        registry.reset_all()

        assert not cache.is_populated()
        assert registry.get(Gender) is cache

    def test_unregister_and_clear(self, store: InMemoryStoreAdapter) -> None:
        registry = EnumerationRegistry()
        registry.register(Gender, store)
        registry.register("Other", store)

        registry.unregister(Gender)
        assert list(registry) == ["Other"]

        registry.clear()
        assert len(registry) == 0


class TestDefaultRegistry:
    """Tests for the module-level helpers."""

    @pytest.mark.asyncio
    async def test_cache_enumeration(self, store: InMemoryStoreAdapter) -> None:
        cache_enumeration(Gender, store, hashed=["id", "other"], order="name")

        cache = get_enumeration_cache(Gender)

        assert (await cache.get_by("other", "drei")).name == "three"
        assert (await cache.resolve("two")).id == 2
        assert get_registry().get(Gender) is cache

    @pytest.mark.asyncio
    async def test_reset_enumeration_caches(self, store: InMemoryStoreAdapter) -> None:
        cache = cache_enumeration(Gender, store)
        await cache.populate()

        reset_enumeration_caches()

        assert not cache.is_populated()
