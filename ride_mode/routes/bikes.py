from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ride_mode.errors import UpstreamUnavailableError
from ride_mode.redis_client import RedisModeStore

router = APIRouter(prefix="/bikes", tags=["bikes"])


@router.get("/{bike_identifier}/mode")
async def get_bike_mode(bike_identifier: str) -> JSONResponse:
    """Current ride mode and remaining range per mode, as recorded in the state store."""
    store = RedisModeStore()
    try:
        current_mode = await store.get_current_mode(bike_identifier)
        ranges = await store.get_mode_ranges(bike_identifier)
    except UpstreamUnavailableError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_body())
    return JSONResponse(
        status_code=200,
        content={
            "bike_identifier": bike_identifier,
            "current_mode": current_mode,
            "range": ranges,
        },
    )
