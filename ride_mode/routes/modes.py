from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from ride_mode.metrics import mode_change_duplicates_total
from ride_mode.pipeline import process_mode_change
from ride_mode.publisher import ModeChangePublisher
from ride_mode.redis_client import RedisModeStore, check_idempotency, release_idempotency

router = APIRouter(prefix="/modes", tags=["modes"])


@router.post("/change")
async def change_mode(
    request: Request,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> JSONResponse:
    """
    Request a ride mode change for a bike. The body is validated by the pipeline
    itself so missing fields, malformed values and unknown modes get distinct bodies.
    Same Idempotency-Key twice -> 200 (already processed), pipeline not re-run.
    The key only stays claimed when the request succeeded; a 400 or 503 releases it
    so the client can retry with the same key.
    """
    key = f"idempotency:mode_change:{idempotency_key}" if idempotency_key else None
    if key:
        is_duplicate = await check_idempotency(key)
        if is_duplicate:
            mode_change_duplicates_total.inc()
            return JSONResponse(
                status_code=200,
                content={"status": "already_processed", "idempotency_key": idempotency_key},
            )

    raw = await request.body()
    try:
        result = await process_mode_change(
            raw,
            RedisModeStore(),
            ModeChangePublisher(),
            request_id=idempotency_key,
        )
    except Exception:
        if key:
            await release_idempotency(key)
        raise
    if key and result.status_code != 200:
        await release_idempotency(key)
    return JSONResponse(status_code=result.status_code, content=result.body)
