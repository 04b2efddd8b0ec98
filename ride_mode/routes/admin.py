from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ride_mode.field_schema import registry
from ride_mode.ride_modes import RIDE_MODE_ORDER

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/schemas")
async def list_schemas() -> JSONResponse:
    """
    Required fields derived for each registered request model, plus the ride mode
    ordering transitions are computed against.
    """
    return JSONResponse(
        status_code=200,
        content={"schemas": registry.snapshot(), "ride_modes": list(RIDE_MODE_ORDER)},
    )
