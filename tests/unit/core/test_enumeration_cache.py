"""Tests for EnumerationCache."""

import pytest

from enumcache import (
    CacheStatus,
    ConfigurationError,
    EnumerationCache,
    EnumerationConfig,
    InMemoryStoreAdapter,
    NotFoundError,
    Operator,
    Predicate,
    QueryDescriptor,
    UnsupportedQueryError,
)


class TestFindByIds:
    """Tests for the strict id finder."""

    @pytest.mark.asyncio
    async def test_empty_list_touches_nothing(
        self, cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        """Test that an empty id list never populates or calls the store."""
        assert await cache.find_by_ids([]) == []
        assert await cache.lookup(QueryDescriptor().find([])) == []

        assert cache.status is CacheStatus.UNCACHED
        assert store.total_calls == 0

    @pytest.mark.asyncio
    async def test_scalar_returns_entity(self, cache: EnumerationCache) -> None:
        entity = await cache.find_by_ids(1)

        assert entity.id == 1

    @pytest.mark.asyncio
    async def test_list_preserves_argument_order(self, cache: EnumerationCache) -> None:
        entities = await cache.find_by_ids([3, 1])

        assert [e.id for e in entities] == [3, 1]

    @pytest.mark.asyncio
    async def test_single_element_list_returns_list(self, cache: EnumerationCache) -> None:
        entities = await cache.find_by_ids([1])

        assert isinstance(entities, list)
        assert entities[0].id == 1

    @pytest.mark.asyncio
    async def test_string_ids(self, cache: EnumerationCache) -> None:
        assert (await cache.find_by_ids("2")).id == 2
        assert [e.id for e in await cache.find_by_ids(["1", 3])] == [1, 3]

    @pytest.mark.asyncio
    async def test_duplicates_and_none_collapse(self, cache: EnumerationCache) -> None:
        entities = await cache.find_by_ids([1, None, 1, 3])

        assert [e.id for e in entities] == [1, 3]

    @pytest.mark.asyncio
    async def test_missing_id_raises(self, cache: EnumerationCache) -> None:
        with pytest.raises(NotFoundError, match="ID=99"):
            await cache.find_by_ids([99])

    @pytest.mark.asyncio
    async def test_missing_id_in_list_aborts(self, cache: EnumerationCache) -> None:
        """Test fail-fast behavior: no partial result is returned."""
        with pytest.raises(NotFoundError) as exc_info:
            await cache.find_by_ids([1, 0, 3])

        assert exc_info.value.key == 0

    @pytest.mark.asyncio
    async def test_none_raises(self, cache: EnumerationCache) -> None:
        with pytest.raises(NotFoundError):
            await cache.find_by_ids(None)
        with pytest.raises(NotFoundError, match="without an ID"):
            await cache.find_by_ids([None])

    @pytest.mark.asyncio
    async def test_served_from_cache(
        self, cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        """Test that finders populate once and then never call the store."""
        await cache.find_by_ids(1)
        await cache.find_by_ids([2, 3])

        assert store.calls == {"execute_ordered_query": 1, "execute_query": 0}
        assert cache.stats["hits"] == 2


class TestLookup:
    """Tests for descriptor lookups."""

    @pytest.mark.asyncio
    async def test_get_all_hit(
        self, by_name_cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        result = await by_name_cache.lookup(QueryDescriptor().order_by("name"))

        assert [e.name for e in result] == ["one", "three", "two"]
        assert store.calls["execute_query"] == 0

    @pytest.mark.asyncio
    async def test_first_hit(self, by_name_cache: EnumerationCache) -> None:
        assert (await by_name_cache.lookup(QueryDescriptor().first())).name == "one"
        assert [e.name for e in await by_name_cache.lookup(QueryDescriptor().limit_to(1))] == [
            "one"
        ]

    @pytest.mark.asyncio
    async def test_where_first_on_unique_attribute(
        self, by_name_cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        result = await by_name_cache.lookup(QueryDescriptor().where(other="zwei").first())

        assert result.id == 2
        assert store.calls["execute_query"] == 0

    @pytest.mark.asyncio
    async def test_where_all_missing_value(self, by_name_cache: EnumerationCache) -> None:
        result = await by_name_cache.lookup(QueryDescriptor().where(other="vier"))

        assert result == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "descriptor",
        [
            QueryDescriptor().project("id", "name"),
            QueryDescriptor().filter(Predicate("id", Operator.GT, 1)),
            QueryDescriptor().filter(Predicate("name", Operator.LIKE, "t%")),
            QueryDescriptor().where(name="one", other="eins"),
            QueryDescriptor().order_by("id desc"),
            QueryDescriptor().limit_to(2),
            QueryDescriptor().offset_by(1),
            QueryDescriptor().for_update(),
        ],
    )
    async def test_miss_matches_store(
        self,
        by_name_cache: EnumerationCache,
        store: InMemoryStoreAdapter,
        descriptor: QueryDescriptor,
    ) -> None:
        """Test that unsupported shapes give exactly the store's answer."""
        expected = await store.execute_query(descriptor)
        store.reset_calls()

        result = await by_name_cache.lookup(descriptor)

        assert result == expected
        assert by_name_cache.status is CacheStatus.UNCACHED
        assert store.calls == {"execute_ordered_query": 0, "execute_query": 1}

    @pytest.mark.asyncio
    async def test_miss_errors_propagate(self, by_name_cache: EnumerationCache) -> None:
        """Test that store errors on the MISS path are not masked."""
        with pytest.raises(UnsupportedQueryError):
            await by_name_cache.lookup(QueryDescriptor().include("profiles"))

    @pytest.mark.asyncio
    async def test_miss_after_population(
        self, by_name_cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        await by_name_cache.populate()

        result = await by_name_cache.lookup(QueryDescriptor().order_by("id desc"))

        assert [e.id for e in result] == [3, 2, 1]
        assert store.calls["execute_query"] == 1
        assert by_name_cache.stats == {"hits": 0, "misses": 1, "bypasses": 0, "total": 1}

    @pytest.mark.asyncio
    async def test_where_on_duplicated_values_goes_to_store(self) -> None:
        """Test that duplicated index values never hide rows."""
        store = InMemoryStoreAdapter(
            [
                {"id": 1, "name": "same"},
                {"id": 2, "name": "same"},
            ]
        )
        cache = EnumerationCache(store, EnumerationConfig(constantize=None))
        await cache.populate()

        result = await cache.lookup(QueryDescriptor().where(name="same"))

        assert [e.id for e in result] == [1, 2]
        assert store.calls["execute_query"] == 1

    @pytest.mark.asyncio
    async def test_where_key_of_other_type_goes_to_store(
        self, by_name_cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        """Test that a key the index does not hold verbatim is left to the store."""
        await by_name_cache.populate()
        descriptor = QueryDescriptor().where(id="2")

        result = await by_name_cache.lookup(descriptor)

        assert store.calls["execute_query"] == 1
        assert result == await store.execute_query(descriptor)
        assert by_name_cache.stats["misses"] == 1

    @pytest.mark.asyncio
    async def test_where_key_of_indexed_type_hits(
        self, by_name_cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        await by_name_cache.populate()

        result = await by_name_cache.lookup(QueryDescriptor().where(id=2))

        assert [e.name for e in result] == ["two"]
        assert store.calls["execute_query"] == 0


class TestAccessors:
    """Tests for direct accessors."""

    @pytest.mark.asyncio
    async def test_get_by(self, by_name_cache: EnumerationCache) -> None:
        assert (await by_name_cache.get_by("other", "eins")).name == "one"
        assert (await by_name_cache.get_by("id", 3)).name == "three"

    @pytest.mark.asyncio
    async def test_find_by_returns_none(self, by_name_cache: EnumerationCache) -> None:
        assert await by_name_cache.find_by("other", "vier") is None
        assert (await by_name_cache.find_by("other", "drei")).id == 3

    @pytest.mark.asyncio
    async def test_find_by_unhashed_attribute_still_raises(
        self, cache: EnumerationCache
    ) -> None:
        with pytest.raises(ConfigurationError):
            await cache.find_by("other", "eins")

    @pytest.mark.asyncio
    async def test_get_first(self, by_name_cache: EnumerationCache) -> None:
        assert (await by_name_cache.get_first()).name == "one"

    @pytest.mark.asyncio
    async def test_populate_and_reset(
        self, cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        assert not cache.is_populated()
        assert await cache.populate() is True
        assert cache.is_populated()
        assert await cache.populate() is False

        cache.reset()

        assert not cache.is_populated()
        with pytest.raises(AttributeError):
            cache.constants.ONE

    @pytest.mark.asyncio
    async def test_reset_picks_up_new_rows(
        self, cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        """Test that the snapshot is stale until an explicit reset."""
        await cache.populate()
        store.insert(id=4, name="four")

        with pytest.raises(NotFoundError):
            await cache.find_by_ids(4)

        cache.reset()

        assert (await cache.find_by_ids(4)).name == "four"

    @pytest.mark.asyncio
    async def test_refresh(
        self, cache: EnumerationCache, store: InMemoryStoreAdapter
    ) -> None:
        await cache.populate()

        assert await cache.refresh() is True
        assert store.calls["execute_ordered_query"] == 2

    def test_constants_disabled(self, store: InMemoryStoreAdapter) -> None:
        cache = EnumerationCache(store, EnumerationConfig(constantize=None))

        with pytest.raises(ConfigurationError):
            cache.constants

    def test_from_options_rejects_unknown(self, store: InMemoryStoreAdapter) -> None:
        with pytest.raises(ConfigurationError):
            EnumerationCache.from_options(store, {"order": "name", "expires": 10})

    def test_repr(self, cache: EnumerationCache) -> None:
        assert repr(cache) == "EnumerationCache(entity='Model', status='uncached')"


class TestEndToEnd:
    """End-to-end scenario over the model table."""

    @pytest.mark.asyncio
    async def test_configured_cache(self, store: InMemoryStoreAdapter) -> None:
        cache = EnumerationCache.from_options(
            store,
            hashed=["id", "other"],
            order="name",
            constantize="name",
            entity_name="Model",
        )

        assert await cache.populate() is True

        entities = await cache.get_all()
        one, three, two = entities
        assert [e.name for e in entities] == ["one", "three", "two"]
        assert await cache.get_by("other", "eins") is one
        assert await cache.resolve("ONE") is one
        assert await cache.resolve("TWO") is two
        assert cache.constants.THREE is three
        assert store.calls["execute_ordered_query"] == 1
