"""
Redis: bike state store (current mode, per-mode range) and idempotency keys.
Keys use the {<bike>} hash tag so one bike's keys share a cluster slot.
"""
import asyncio
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from ride_mode.config import settings
from ride_mode.errors import UpstreamUnavailableError
from ride_mode.metrics import state_store_failures_total
from ride_mode.ride_modes import RIDE_MODE_ORDER

logger = logging.getLogger(__name__)

STATE_STORE = "state_store"

_redis: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global _redis
    if _redis is None:
        _redis = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


async def check_idempotency(key: str, ttl_seconds: int | None = None) -> bool:
    """
    Returns True if this key was already seen (duplicate) -> caller should return 200.
    Returns False if key is new -> caller should proceed.
    Uses SET NX EX: if we set it, we're first; if not, duplicate.
    """
    r = await get_redis()
    ttl = ttl_seconds or settings.idempotency_ttl_seconds
    was_set = await r.set(key, "1", nx=True, ex=ttl)
    return not was_set


async def release_idempotency(key: str) -> None:
    """Forget a claimed key so a request that did not succeed can be retried with it."""
    r = await get_redis()
    await r.delete(key)


def current_mode_key(bike_identifier: str) -> str:
    return f"{{{bike_identifier}}}_current_mode"


def range_key(bike_identifier: str, mode: str) -> str:
    return f"{{{bike_identifier}}}_range_{mode}"


class RedisModeStore:
    """Looks up bike state written by the telemetry pipeline."""

    def __init__(
        self,
        client: redis.Redis | None = None,
        timeout: float | None = None,
        default_mode: str | None = None,
    ):
        self._client = client
        self.timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        self.default_mode = default_mode if default_mode is not None else settings.default_ride_mode

    async def _conn(self) -> redis.Redis:
        if self._client is None:
            self._client = await get_redis()
        return self._client

    async def _call(self, what: str, coro_factory):
        try:
            conn = await self._conn()
            return await asyncio.wait_for(coro_factory(conn), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            state_store_failures_total.inc()
            raise UpstreamUnavailableError(STATE_STORE, f"state store timed out reading {what}") from e
        except (RedisError, OSError) as e:
            state_store_failures_total.inc()
            raise UpstreamUnavailableError(STATE_STORE, f"state store error reading {what}: {e}") from e

    async def get_current_mode(self, bike_identifier: str) -> str:
        key = current_mode_key(bike_identifier)
        mode = await self._call(key, lambda conn: conn.get(key))
        if mode:
            logger.info("Resolved current_mode=%s for bike=%s", mode, bike_identifier)
            return mode
        if self.default_mode:
            logger.info("No current mode for bike=%s, using default %s", bike_identifier, self.default_mode)
            return self.default_mode
        state_store_failures_total.inc()
        raise UpstreamUnavailableError(STATE_STORE, f"no current mode recorded for bike: {bike_identifier}")

    async def get_mode_ranges(self, bike_identifier: str) -> dict[str, str | None]:
        """Remaining range per ride mode, None where the store has no value."""
        keys = [range_key(bike_identifier, mode) for mode in RIDE_MODE_ORDER]
        values = await self._call("ranges", lambda conn: conn.mget(keys))
        return dict(zip(RIDE_MODE_ORDER, values))
