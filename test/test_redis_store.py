"""Tests the Redis-backed state store (mocked Redis)."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from ride_mode.errors import UpstreamUnavailableError
from ride_mode.redis_client import (
    RedisModeStore,
    check_idempotency,
    current_mode_key,
    range_key,
    release_idempotency,
)


class TestKeys:
    def test_current_mode_key_uses_hash_tag(self):
        assert current_mode_key("BK1") == "{BK1}_current_mode"

    def test_range_key(self):
        assert range_key("BK1", "combat") == "{BK1}_range_combat"


class TestGetCurrentMode:
    @pytest.mark.asyncio
    async def test_reads_mode(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value="combat")

        store = RedisModeStore(mock_redis, timeout=1)
        assert await store.get_current_mode("BK1") == "combat"
        mock_redis.get.assert_awaited_once_with("{BK1}_current_mode")

    @pytest.mark.asyncio
    async def test_unknown_bike_is_unavailable(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=None)

        store = RedisModeStore(mock_redis, timeout=1, default_mode="")
        with pytest.raises(UpstreamUnavailableError, match="no current mode"):
            await store.get_current_mode("BK404")

    @pytest.mark.asyncio
    async def test_unknown_bike_uses_default_mode(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=None)

        store = RedisModeStore(mock_redis, timeout=1, default_mode="glide")
        assert await store.get_current_mode("BK404") == "glide"

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("refused"))

        store = RedisModeStore(mock_redis, timeout=1)
        with pytest.raises(UpstreamUnavailableError) as exc:
            await store.get_current_mode("BK1")
        assert exc.value.source == "state_store"
        assert exc.value.status_code == 503

    @pytest.mark.asyncio
    async def test_slow_store_times_out(self):
        async def _slow(key):
            await asyncio.sleep(1)
            return "glide"

        mock_redis = AsyncMock()
        mock_redis.get = _slow

        store = RedisModeStore(mock_redis, timeout=0.01)
        with pytest.raises(UpstreamUnavailableError, match="timed out"):
            await store.get_current_mode("BK1")


class TestGetModeRanges:
    @pytest.mark.asyncio
    async def test_ranges_by_mode(self):
        mock_redis = AsyncMock()
        mock_redis.mget = AsyncMock(return_value=["120", None, "64"])

        store = RedisModeStore(mock_redis, timeout=1)
        assert await store.get_mode_ranges("BK1") == {"glide": "120", "combat": None, "ballistic": "64"}
        mock_redis.mget.assert_awaited_once_with(
            ["{BK1}_range_glide", "{BK1}_range_combat", "{BK1}_range_ballistic"]
        )


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_first_claim_is_not_duplicate(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=True)
        with patch("ride_mode.redis_client.get_redis", AsyncMock(return_value=mock_redis)):
            assert await check_idempotency("idempotency:mode_change:k1", ttl_seconds=60) is False
        mock_redis.set.assert_awaited_once_with("idempotency:mode_change:k1", "1", nx=True, ex=60)

    @pytest.mark.asyncio
    async def test_second_claim_is_duplicate(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=None)
        with patch("ride_mode.redis_client.get_redis", AsyncMock(return_value=mock_redis)):
            assert await check_idempotency("idempotency:mode_change:k1") is True

    @pytest.mark.asyncio
    async def test_release_deletes_key(self):
        mock_redis = AsyncMock()
        with patch("ride_mode.redis_client.get_redis", AsyncMock(return_value=mock_redis)):
            await release_idempotency("idempotency:mode_change:k1")
        mock_redis.delete.assert_awaited_once_with("idempotency:mode_change:k1")
