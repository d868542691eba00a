import pytest
from unittest.mock import AsyncMock, MagicMock

from newsnow.repositories import CacheRecord
from newsnow.services import FreshnessEvaluator


@pytest.fixture
def evaluator(source_registry):
    return FreshnessEvaluator(source_registry)


class TestFreshnessEvaluator:

    @pytest.mark.asyncio
    async def test_end_to_end_example(self, evaluator, sql_store, clock):
        clock.now = 1000
        await sql_store.set("hn", [{"title": "a"}])

        fresh = await evaluator.evaluate(sql_store, ["hn"], now=1400)
        stale = await evaluator.evaluate(sql_store, ["hn"], now=1600)

        assert len(fresh) == 1
        assert fresh[0].fresh is True
        assert fresh[0].updated_time == 1400
        assert fresh[0].items == [{"title": "a"}]
        assert stale[0].fresh is False
        assert stale[0].updated_time == 1000

    @pytest.mark.parametrize("age, expected_fresh", [(499, True), (500, False), (501, False)])
    @pytest.mark.asyncio
    async def test_interval_boundary(self, evaluator, age, expected_fresh):
        store = MagicMock()
        store.get_entire = AsyncMock(return_value=[CacheRecord(id="hn", updated=10_000, items=[])])
        now = 10_000 + age

        [response] = await evaluator.evaluate(store, ["hn"], now=now)

        assert response.fresh is expected_fresh
        assert response.updated_time == (now if expected_fresh else 10_000)
        assert response.status == "cache"

    @pytest.mark.asyncio
    async def test_unknown_and_disabled_ids_are_not_queried(self, evaluator):
        store = MagicMock()
        store.get_entire = AsyncMock(return_value=[])

        await evaluator.evaluate(store, ["hn", "forged", "retired", "v2ex", "hn"], now=0)

        store.get_entire.assert_awaited_once_with(["hn", "v2ex"])

    @pytest.mark.asyncio
    async def test_only_unknown_ids_skip_backend(self, evaluator):
        store = MagicMock()
        store.get_entire = AsyncMock()

        assert await evaluator.evaluate(store, ["forged"], now=0) == []
        store.get_entire.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_sources_are_omitted(self, evaluator, sql_store, clock):
        clock.now = 1000
        await sql_store.set("v2ex", [{"title": "b"}])

        responses = await evaluator.evaluate(sql_store, ["hn", "v2ex", "weibo"], now=1100)

        assert [r.id for r in responses] == ["v2ex"]

    @pytest.mark.asyncio
    async def test_each_source_uses_its_own_interval(self, evaluator, sql_store, clock):
        clock.now = 1000
        await sql_store.set("hn", [])
        await sql_store.set("v2ex", [])

        responses = await evaluator.evaluate(sql_store, ["hn", "v2ex"], now=2000)

        by_id = {r.id: r for r in responses}
        assert by_id["hn"].fresh is False
        assert by_id["v2ex"].fresh is True

    @pytest.mark.asyncio
    async def test_unavailable_cache_returns_nothing(self, evaluator):
        assert await evaluator.evaluate(None, ["hn", "v2ex"]) == []

    @pytest.mark.asyncio
    async def test_missing_id_list_means_nothing_cached(self, evaluator):
        store = MagicMock()
        store.get_entire = AsyncMock()

        assert await evaluator.evaluate(store, None) == []
        store.get_entire.assert_not_awaited()

    def test_serializes_updated_time_alias(self, evaluator):
        response = evaluator.stamp(CacheRecord(id="hn", updated=1000, items=[]), now=1200)

        assert response.model_dump(by_alias=True)["updatedTime"] == 1200
