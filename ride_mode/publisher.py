"""
Publish mode change events. Backend: AWS SNS when SNS_TOPIC_ARN is set, else Redis PUBLISH.
Each attempt is bounded by the upstream deadline; failed attempts are retried with
exponential backoff up to publish_max_attempts.
"""
import asyncio
import json
import logging

from botocore.exceptions import BotoCoreError, ClientError
from redis.exceptions import RedisError

from ride_mode.config import settings
from ride_mode.errors import UpstreamUnavailableError
from ride_mode.metrics import mode_change_events_published_total, mode_change_publish_failures_total
from ride_mode.models import ModeChangeEvent
from ride_mode.redis_client import get_redis
from ride_mode.sns_client import publish_message

logger = logging.getLogger(__name__)

PUBLISH_CHANNEL = "publish_channel"

_RETRYABLE = (BotoCoreError, ClientError, RedisError, OSError, asyncio.TimeoutError)


async def _send_once(body: dict, dedup_key: str | None) -> str:
    if settings.sns_topic_arn:
        await publish_message(body, dedup_key=dedup_key)
        return "sns"
    r = await get_redis()
    message = {**body, "dedup_key": dedup_key} if dedup_key else body
    await r.publish(settings.ride_mode_channel, json.dumps(message))
    return "redis"


async def publish_mode_change(
    event: ModeChangeEvent,
    dedup_key: str | None = None,
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
    timeout: float | None = None,
) -> None:
    body = event.model_dump()
    attempts = max(1, max_attempts or settings.publish_max_attempts)
    backoff = settings.publish_backoff_seconds if backoff_seconds is None else backoff_seconds
    deadline = timeout or settings.upstream_timeout_seconds

    for attempt in range(attempts):
        try:
            channel = await asyncio.wait_for(_send_once(body, dedup_key), timeout=deadline)
        except _RETRYABLE as e:
            logger.warning(
                "Publish failed for bike=%s (attempt %d/%d): %r",
                event.bike_identifier, attempt + 1, attempts, e,
            )
            if attempt + 1 >= attempts:
                mode_change_publish_failures_total.inc()
                raise UpstreamUnavailableError(
                    PUBLISH_CHANNEL,
                    f"could not publish mode change for bike {event.bike_identifier} after {attempts} attempts",
                ) from e
            await asyncio.sleep(backoff * 2 ** attempt)
            continue
        mode_change_events_published_total.labels(channel=channel).inc()
        logger.info("Published mode change bike=%s steps=%d via %s", event.bike_identifier, event.steps, channel)
        return


class ModeChangePublisher:
    """Default publisher for the pipeline; wraps publish_mode_change."""

    async def publish(self, event: ModeChangeEvent, dedup_key: str | None = None) -> None:
        await publish_mode_change(event, dedup_key=dedup_key)
