"""
Mode change pipeline.

    raw document -> presence check -> typed request -> resolve current mode (if absent)
    -> index current / target -> forward steps -> publish (steps > 0)

Stages a request passes through:
    received -> fields_checked -> deserialized -> resolved -> enum_validated -> computed
    -> short_circuited | published
Failures end in rejected (400) or unavailable (503).
"""
import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from ride_mode.config import settings
from ride_mode.errors import MissingFieldsError, ModeChangeError, UpstreamUnavailableError
from ride_mode.field_schema import registry
from ride_mode.metrics import mode_change_requests_total
from ride_mode.models import ModeChangeEvent, ModeChangeRequest
from ride_mode.ride_modes import forward_steps, mode_index
from ride_mode.validation import deserialize, load_document, validate_document

logger = logging.getLogger(__name__)


class RequestStage(str, enum.Enum):
    RECEIVED = "received"
    FIELDS_CHECKED = "fields_checked"
    DESERIALIZED = "deserialized"
    RESOLVED = "resolved"
    ENUM_VALIDATED = "enum_validated"
    COMPUTED = "computed"
    SHORT_CIRCUITED = "short_circuited"
    PUBLISHED = "published"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


class ModeStore(Protocol):
    async def get_current_mode(self, bike_identifier: str) -> str: ...


class EventPublisher(Protocol):
    async def publish(self, event: ModeChangeEvent, dedup_key: str | None = None) -> None: ...


@dataclass(frozen=True)
class PipelineResult:
    status_code: int
    body: dict
    stage: RequestStage
    steps: int | None = None
    trace: tuple[RequestStage, ...] = field(default=())


def _success(message: str) -> dict:
    return {"status": "success", "message": message}


async def _run(
    raw: Any,
    store: ModeStore,
    publisher: EventPublisher,
    policy: str,
    request_id: str | None,
    trace: list[RequestStage],
) -> PipelineResult:
    trace.append(RequestStage.RECEIVED)
    document = load_document(raw)
    missing = validate_document(document, registry.schema_for(ModeChangeRequest))
    if missing:
        raise MissingFieldsError(missing)
    trace.append(RequestStage.FIELDS_CHECKED)

    request = deserialize(document, ModeChangeRequest)
    trace.append(RequestStage.DESERIALIZED)

    current_mode = request.current_mode
    if not current_mode:
        current_mode = await store.get_current_mode(request.bike_identifier)
    trace.append(RequestStage.RESOLVED)

    current_index = mode_index("current_mode", current_mode)
    target_index = mode_index("change_to_mode", request.change_to_mode)
    trace.append(RequestStage.ENUM_VALIDATED)

    steps = forward_steps(current_index, target_index)
    trace.append(RequestStage.COMPUTED)
    logger.info(
        "bike=%s current_mode=%s change_to_mode=%s steps=%d",
        request.bike_identifier, current_mode, request.change_to_mode, steps,
    )

    if steps == 0:
        trace.append(RequestStage.SHORT_CIRCUITED)
        return PipelineResult(
            200, _success(f"Bike already in mode {request.change_to_mode}"),
            RequestStage.SHORT_CIRCUITED, steps, tuple(trace),
        )

    event = ModeChangeEvent(bike_identifier=request.bike_identifier, steps=steps)
    # Without a caller-supplied id every request is distinct; bike and steps alone repeat.
    dedup_key = f"{request.bike_identifier}:{steps}:{request_id or uuid.uuid4().hex}"
    try:
        await publisher.publish(event, dedup_key=dedup_key)
    except UpstreamUnavailableError:
        if policy == "raise":
            raise
        logger.exception("Mode change for bike=%s was not published", request.bike_identifier)
    trace.append(RequestStage.PUBLISHED)
    return PipelineResult(
        200, _success(f"Mode change request processed for bike: {request.bike_identifier}"),
        RequestStage.PUBLISHED, steps, tuple(trace),
    )


async def process_mode_change(
    raw: Any,
    store: ModeStore,
    publisher: EventPublisher,
    *,
    publish_failure_policy: Literal["log", "raise"] | None = None,
    request_id: str | None = None,
) -> PipelineResult:
    """
    Run one mode change request to completion. Never raises for request-level
    failures: they come back as a PipelineResult with a 400 or 503 status.
    """
    policy = publish_failure_policy or settings.publish_failure_policy
    trace: list[RequestStage] = []
    try:
        result = await _run(raw, store, publisher, policy, request_id, trace)
    except UpstreamUnavailableError as e:
        logger.warning("Mode change unavailable (%s): %s", e.source, e)
        trace.append(RequestStage.UNAVAILABLE)
        result = PipelineResult(e.status_code, e.to_body(), RequestStage.UNAVAILABLE, trace=tuple(trace))
    except ModeChangeError as e:
        logger.info("Mode change rejected: %s", e)
        trace.append(RequestStage.REJECTED)
        result = PipelineResult(e.status_code, e.to_body(), RequestStage.REJECTED, trace=tuple(trace))
    mode_change_requests_total.labels(outcome=result.stage.value).inc()
    return result
