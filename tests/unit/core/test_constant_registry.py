"""Tests for ConstantRegistry."""

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from enumcache import (
    ConfigurationError,
    ConstantRegistry,
    EnumerationCache,
    EnumerationConfig,
    InMemoryStoreAdapter,
    OrderTerm,
    Record,
    UnknownNameError,
)
from enumcache.core.services.constant_registry import constant_name


class SlowStore(InMemoryStoreAdapter):
    """Store whose first full fetch waits until released."""

    def __init__(self, rows: Sequence[dict], **kwargs: Any) -> None:
        super().__init__(rows, **kwargs)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def execute_ordered_query(self, order: Sequence[OrderTerm]) -> Any:
        if not self.started.is_set():
            self.started.set()
            await self.release.wait()
        return await super().execute_ordered_query(order)


class TestConstantName:
    """Tests for constant name derivation."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("one", "ONE"),
            ("no such name", "NO_SUCH_NAME"),
            ("  in-progress ", "IN_PROGRESS"),
            (42, "42"),
        ],
    )
    def test_constant_name(self, value: object, expected: str) -> None:
        assert constant_name(value) == expected


class TestConstantRegistry:
    """Tests for ConstantRegistry."""

    def test_register_by_attribute(self) -> None:
        registry = ConstantRegistry("name")
        one = Record(id=1, name="one")

        registry.register([one])

        assert registry.get("ONE") is one
        assert registry.get("one") is one
        assert "One" in registry
        assert registry.names == ["ONE"]

    def test_register_by_function(self) -> None:
        """Test that a naming function can derive the constant name."""
        registry = ConstantRegistry(lambda e: f"{e.name}_{e.id}")

        registry.register([Record(id=1, name="one")])

        assert registry.get("ONE_1").id == 1

    def test_name_collision_last_wins(self) -> None:
        registry = ConstantRegistry("name")

        registry.register([Record(id=1, name="Same"), Record(id=2, name="same")])

        assert registry.get("SAME").id == 2
        assert len(registry) == 1

    def test_entities_without_name_are_skipped(self) -> None:
        registry = ConstantRegistry("name")

        registry.register([Record(id=1, name=None)])

        assert len(registry) == 0

    def test_attribute_access(self) -> None:
        registry = ConstantRegistry("name", entity_name="Model")
        registry.register([Record(id=1, name="one")])

        assert registry.ONE.id == 1
        assert registry.one.id == 1
        with pytest.raises(UnknownNameError, match="Model::TWO"):
            registry.TWO

    def test_disabled_constantize_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ConstantRegistry(None)

    @pytest.mark.asyncio
    async def test_resolve_populates_once_on_miss(
        self, store: InMemoryStoreAdapter
    ) -> None:
        """Test lazy population on a first resolution miss."""
        cache = EnumerationCache(store, EnumerationConfig(), entity_name="Model")

        assert (await cache.constants.resolve("ONE")).id == 1
        assert (await cache.constants.resolve("TWO")).id == 2
        assert store.calls["execute_ordered_query"] == 1

    @pytest.mark.asyncio
    async def test_resolve_unknown_name(self, store: InMemoryStoreAdapter) -> None:
        """Test that an undefined name surfaces as UnknownNameError."""
        cache = EnumerationCache(store, EnumerationConfig(), entity_name="Model")
        await cache.populate()

        with pytest.raises(UnknownNameError) as exc_info:
            await cache.resolve("FOUR")

        assert exc_info.value.name == "FOUR"
        assert store.calls["execute_ordered_query"] == 1

    @pytest.mark.asyncio
    async def test_resolve_without_populate_hook(self) -> None:
        registry = ConstantRegistry("name")

        with pytest.raises(UnknownNameError):
            await registry.resolve("ONE")

    @pytest.mark.asyncio
    async def test_resolve_during_population(self, model_rows: list[dict]) -> None:
        """Test that names resolve from the store while another caller populates."""
        store = SlowStore(model_rows)
        cache = EnumerationCache(store, EnumerationConfig(), entity_name="Model")

        task = asyncio.create_task(cache.populate())
        await store.started.wait()

        assert (await cache.resolve("one")).id == 1
        assert cache.is_caching()
        with pytest.raises(UnknownNameError, match="Model::FOUR"):
            await cache.resolve("FOUR")

        store.release.set()
        assert await task is True
        assert cache.constants.ONE.id == 1
        assert store.calls["execute_ordered_query"] == 3

    @pytest.mark.asyncio
    async def test_resolve_concurrently_with_populate(self, model_rows: list[dict]) -> None:
        store = SlowStore(model_rows)
        cache = EnumerationCache(store, EnumerationConfig(), entity_name="Model")

        async def release() -> None:
            await store.started.wait()
            store.release.set()

        populated, entity, _ = await asyncio.gather(
            cache.populate(), cache.resolve("ONE"), release()
        )

        assert populated is True
        assert entity.id == 1
