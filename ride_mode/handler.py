"""
AWS Lambda entry point. The invocation event is the mode change document itself.
Returns {"statusCode": ..., "body": {...}}.
"""
import asyncio
import logging
import sys

from ride_mode.config import settings
from ride_mode.pipeline import process_mode_change
from ride_mode.publisher import ModeChangePublisher
from ride_mode.redis_client import RedisModeStore, close_redis

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def handle_event(event, request_id: str | None = None) -> dict:
    try:
        result = await process_mode_change(
            event,
            RedisModeStore(),
            ModeChangePublisher(),
            request_id=request_id,
        )
    finally:
        # the client is bound to this invocation's event loop
        await close_redis()
    logger.info("request_id=%s outcome=%s status=%d", request_id, result.stage.value, result.status_code)
    return {"statusCode": result.status_code, "body": result.body}


def lambda_handler(event, context=None) -> dict:
    request_id = getattr(context, "aws_request_id", None)
    return asyncio.run(handle_event(event, request_id=request_id))
