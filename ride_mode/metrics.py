"""
Prometheus metrics: mode change outcomes, publish results, state store failures.
"""
from prometheus_client import Counter, generate_latest

# Pipeline: terminal stage per request (short_circuited, published, rejected, unavailable)
mode_change_requests_total = Counter(
    "mode_change_requests_total",
    "Total mode change requests by terminal outcome",
    ["outcome"],
)
mode_change_duplicates_total = Counter(
    "mode_change_duplicates_total",
    "Total mode change requests skipped because the Idempotency-Key was already seen",
)

# Publish channel
mode_change_events_published_total = Counter(
    "mode_change_events_published_total",
    "Total mode change events handed to the publish channel",
    ["channel"],
)
mode_change_publish_failures_total = Counter(
    "mode_change_publish_failures_total",
    "Total mode change events that could not be published after all attempts",
)

# State store
state_store_failures_total = Counter(
    "state_store_failures_total",
    "Total state store lookups that failed, timed out or found no mode",
)


def get_metrics_content_type():
    return "text/plain; charset=utf-8; version=0.0.4"


def get_metrics_bytes():
    return generate_latest()
