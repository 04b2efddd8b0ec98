from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"
    default_ride_mode: str | None = None  # used when the store has no mode for a bike (e.g. "glide")
    idempotency_ttl_seconds: int = 86400

    # Publish channel: SNS when SNS_TOPIC_ARN is set, else Redis PUBLISH on ride_mode_channel
    aws_region: str = "ap-south-1"
    sns_topic_arn: str | None = None
    ride_mode_channel: str = "ride_mode:changes"

    upstream_timeout_seconds: float = 5.0  # deadline for each store / publish call
    publish_max_attempts: int = 3
    publish_backoff_seconds: float = 0.2  # doubled after each failed attempt
    publish_failure_policy: Literal["log", "raise"] = "log"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
