"""
AWS SNS helper: publish mode change events. Used when SNS_TOPIC_ARN is set.
"""
import asyncio
import json
from typing import Any

import boto3

from ride_mode.config import settings

_sns_client: Any = None


def _get_client():
    global _sns_client
    if _sns_client is None:
        _sns_client = boto3.client("sns", region_name=settings.aws_region)
    return _sns_client


async def publish_message(body: dict, dedup_key: str | None = None, topic_arn: str | None = None) -> str:
    """Publish body as JSON to the topic (boto3 runs in a thread). Returns the SNS MessageId."""
    client = _get_client()
    kwargs: dict[str, Any] = {
        "TopicArn": topic_arn or settings.sns_topic_arn,
        "Message": json.dumps(body),
    }
    if dedup_key:
        # consumers drop redeliveries carrying a dedup key they have already applied
        kwargs["MessageAttributes"] = {
            "dedup_key": {"DataType": "String", "StringValue": dedup_key},
        }
    resp = await asyncio.to_thread(client.publish, **kwargs)
    return resp.get("MessageId", "")
