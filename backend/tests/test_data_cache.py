"""
Tests for the master data cache and derived view orchestration.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from exceptions import QuotaExhaustedError, UnknownViewError
from services.data_cache import MASTER_CACHE_KEY, DataCacheService, cache_key


class TestCacheKey:
    def test_plain(self):
        assert cache_key("version1") == "version1"

    def test_with_param(self):
        assert cache_key("status", "active") == "status_active"


class TestMasterData:
    @pytest.mark.asyncio
    async def test_miss_fetches_and_caches(self, data_service, memory_store, cache_store):
        records = await data_service.get_master_data()

        assert [r["id"] for r in records] == ["r1", "r2", "r3", "r4", "r5", "r6"]
        assert memory_store.query_count == 1
        assert cache_store.peek(MASTER_CACHE_KEY) == records

    @pytest.mark.asyncio
    async def test_hit_skips_store(self, data_service, memory_store):
        await data_service.get_master_data()
        await data_service.get_master_data()
        assert memory_store.query_count == 1

    @pytest.mark.asyncio
    async def test_expiry_refetches(self, data_service, memory_store, clock):
        await data_service.get_master_data()
        clock.advance(1800)
        await data_service.get_master_data()
        assert memory_store.query_count == 2

    @pytest.mark.asyncio
    async def test_quota_returns_fallback_without_caching(
        self, data_service, memory_store, fallback, cache_store
    ):
        memory_store.error = QuotaExhaustedError()

        records = await data_service.get_master_data()

        assert records == fallback.all_records()
        assert cache_store.peek(MASTER_CACHE_KEY) is None
        assert data_service.quota_status()["quotaExceeded"] is True

    @pytest.mark.asyncio
    async def test_store_retried_after_quota_recovers(self, data_service, memory_store):
        memory_store.error = google_exceptions.ResourceExhausted("Quota exceeded.")
        await data_service.get_master_data()

        memory_store.error = None
        records = await data_service.get_master_data()

        assert memory_store.query_count == 2
        assert records[0]["id"] == "r1"
        assert data_service.quota_status()["quotaExceeded"] is False

    @pytest.mark.asyncio
    async def test_non_quota_error_propagates(self, data_service, memory_store, cache_store):
        error = google_exceptions.PermissionDenied("Missing or insufficient permissions.")
        memory_store.error = error

        with pytest.raises(google_exceptions.PermissionDenied) as exc_info:
            await data_service.get_master_data()

        assert exc_info.value is error
        assert len(cache_store) == 0

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_fetch(self, data_service, memory_store):
        original = memory_store.fetch_range

        async def slow_fetch(*args, **kwargs):
            await asyncio.sleep(0.01)
            return await original(*args, **kwargs)

        with patch.object(memory_store, "fetch_range", side_effect=slow_fetch) as fetch:
            results = await asyncio.gather(*(data_service.get_master_data() for _ in range(5)))

        assert fetch.call_count == 1
        assert all(result == results[0] for result in results)


class TestOptimizedData:
    @pytest.mark.asyncio
    async def test_derives_and_caches(self, data_service, cache_store):
        version2 = await data_service.get_optimized_data("version2")

        # r3 has v2 = 250
        assert [r["id"] for r in version2] == ["r1", "r2", "r4", "r5", "r6"]
        assert cache_store.peek("version2") == version2

    @pytest.mark.asyncio
    async def test_hit_does_not_touch_store(self, data_service, memory_store):
        await data_service.get_optimized_data("stats")
        memory_store.fetch_range = AsyncMock(side_effect=AssertionError("store called"))

        stats = await data_service.get_optimized_data("stats")

        assert stats["counts"]["total"] == 6

    @pytest.mark.asyncio
    async def test_views_share_one_master_fetch(self, data_service, memory_store):
        await data_service.get_optimized_data("version1")
        await data_service.get_optimized_data("version2")
        await data_service.get_optimized_data("stats")
        assert memory_store.query_count == 1

    @pytest.mark.asyncio
    async def test_status_param(self, data_service, cache_store):
        active = await data_service.get_optimized_data("status", "active")

        assert [r["id"] for r in active] == ["r1", "r2"]
        assert cache_store.peek("status_active") == active

    @pytest.mark.asyncio
    async def test_param_ignored_for_unparameterized_views(self, data_service):
        records = await data_service.get_optimized_data("version1", "active")
        assert len(records) == 6

    @pytest.mark.asyncio
    async def test_status_without_param_is_buckets(self, data_service):
        buckets = await data_service.get_optimized_data("status")
        assert buckets["counts"]["active"] == 2
        assert buckets["counts"]["total"] == 6

    @pytest.mark.asyncio
    async def test_unknown_view(self, data_service, memory_store):
        with pytest.raises(UnknownViewError):
            await data_service.get_optimized_data("version3")
        assert memory_store.query_count == 0

    @pytest.mark.asyncio
    async def test_expired_view_is_recomputed(self, data_service, memory_store, cache_store, clock):
        await data_service.get_optimized_data("version1")
        clock.advance(1800)

        await data_service.get_optimized_data("version1")

        assert memory_store.query_count == 2
        assert cache_store.peek("version1") is not None

    @pytest.mark.asyncio
    async def test_quota_serves_preshaped_fallback_view(
        self, data_service, memory_store, fallback, cache_store, clock
    ):
        memory_store.error = QuotaExhaustedError()

        stats = await data_service.get_optimized_data("stats")

        assert stats == fallback.payload["stats"]
        assert cache_store.peek(MASTER_CACHE_KEY) is None

        # Fallback views use the short TTL, so the store is retried soon
        clock.advance(60)
        memory_store.error = None
        stats = await data_service.get_optimized_data("stats")
        assert stats["counts"]["total"] == 6

    @pytest.mark.asyncio
    async def test_quota_status_view_derived_from_fallback(self, data_service, memory_store):
        memory_store.error = QuotaExhaustedError()

        active = await data_service.get_optimized_data("status", "active")

        assert {r["id"] for r in active} == {"fallback_005", "fallback_009", "fallback_011"}

    @pytest.mark.asyncio
    async def test_non_quota_error_propagates(self, data_service, memory_store, cache_store):
        memory_store.error = RuntimeError("connection reset")

        with pytest.raises(RuntimeError):
            await data_service.get_optimized_data("version1")

        assert cache_store.peek("version1") is None


class TestCharts:
    @pytest.mark.asyncio
    async def test_pie(self, data_service):
        pie = await data_service.get_chart_data("pie")
        assert pie == {"Male": 3, "Female": 1, "Company": 1, "Group": 1}

    @pytest.mark.asyncio
    async def test_bar(self, data_service):
        bar = await data_service.get_chart_data("bar")
        active = next(d for d in bar["datasets"] if d["status"] == "active")
        assert active["data"] == [2, 0, 0, 0]

    @pytest.mark.asyncio
    async def test_unknown_chart(self, data_service):
        with pytest.raises(UnknownViewError):
            await data_service.get_chart_data("donut")

    @pytest.mark.asyncio
    async def test_charts_follow_stats_invalidation(self, data_service, memory_store):
        await data_service.get_chart_data("pie")
        await memory_store.update_item("r6", {"category": "Male"})
        data_service.invalidate_master()

        pie = await data_service.get_chart_data("pie")

        assert pie["Male"] == 4
        assert pie["Company"] == 0


class TestStatusTop:
    @pytest.mark.asyncio
    async def test_queries_store_directly(self, data_service, memory_store, cache_store):
        records = await data_service.get_status_top("active")

        assert [r["id"] for r in records] == ["r1", "r2"]
        assert cache_store.peek(MASTER_CACHE_KEY) is None
        assert cache_store.peek("version1_status_active") == records

    @pytest.mark.asyncio
    async def test_limit(self, memory_store, fallback, cache_store):
        service = DataCacheService(cache_store, memory_store, fallback, status_lookup_limit=1)
        assert [r["id"] for r in await service.get_status_top("active")] == ["r1"]

    @pytest.mark.asyncio
    async def test_quota_uses_fallback_records(self, data_service, memory_store, cache_store):
        memory_store.error = QuotaExhaustedError()

        records = await data_service.get_status_top("deceased")

        assert [r["id"] for r in records] == ["fallback_001", "fallback_002", "fallback_004"]
        assert cache_store.peek("version1_status_deceased") is None

    @pytest.mark.asyncio
    async def test_non_quota_error_propagates(self, data_service, memory_store):
        memory_store.error = PermissionError("denied")
        with pytest.raises(PermissionError):
            await data_service.get_status_top("active")


class TestInvalidation:
    @pytest.mark.asyncio
    async def test_invalidate_master_cascade(self, data_service, memory_store):
        for view in ("version1", "version2", "stats"):
            await data_service.get_optimized_data(view)
        await data_service.get_optimized_data("status", "active")
        narrow = await data_service.get_status_top("active")
        assert memory_store.query_count == 2

        removed = data_service.invalidate_master()

        assert set(removed) == {MASTER_CACHE_KEY, "version1", "version2", "stats", "status_active"}

        # Registered views recompute from a fresh fetch
        await memory_store.update_item("r1", {"status": "deceased"})
        stats = await data_service.get_optimized_data("stats")
        assert stats["counts"]["active"] == 1
        assert memory_store.query_count == 4

        # The narrow lookup is not registered and keeps its prior value
        assert await data_service.get_status_top("active") == narrow
        assert memory_store.query_count == 4

    @pytest.mark.asyncio
    async def test_registered_key_is_cascaded(self, data_service, cache_store):
        data_service.register_dependent("custom_view")
        cache_store.set("custom_view", 1)

        assert "custom_view" in data_service.invalidate_master()
        assert "custom_view" not in cache_store

    @pytest.mark.asyncio
    async def test_invalidate_all(self, data_service, cache_store):
        await data_service.get_optimized_data("version1")
        await data_service.get_status_top("active")

        assert data_service.invalidate_all() == 3
        assert len(cache_store) == 0

    def test_reload_fallback_dataset(self, data_service, fallback):
        info = data_service.reload_fallback_dataset()
        assert info["counts"]["all"] == 12

    def test_derived_ttl_above_master_warns(self, memory_store, fallback, cache_store, caplog):
        DataCacheService(cache_store, memory_store, fallback, master_ttl=60, derived_ttl=120)
        assert "exceeds master TTL" in caplog.text


class TestStatistics:
    @pytest.mark.asyncio
    async def test_statistics(self, data_service):
        await data_service.get_optimized_data("version1")
        await data_service.get_optimized_data("version1")

        stats = data_service.get_cache_statistics()

        assert stats["master_cached"] is True
        assert stats["master_size"] == 6
        assert stats["keys"] == ["master_data", "version1"]
        assert "status_active" in stats["registered_keys"]
        assert stats["ttl"] == {"master": 1800, "derived": 1800, "fallback": 60}
        assert stats["hits"] == 1
