"""
HTTP entry point. Run: uvicorn ride_mode.main:app
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import Response

from ride_mode.config import settings
from ride_mode.metrics import get_metrics_bytes, get_metrics_content_type
from ride_mode.redis_client import close_redis, get_redis
from ride_mode.routes import admin, bikes, modes

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    stream=sys.stdout,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_redis()
    yield
    await close_redis()


app = FastAPI(title="Ride Mode Service", lifespan=lifespan)
app.include_router(modes.router)
app.include_router(bikes.router)
app.include_router(admin.router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus scrape endpoint: mode change outcomes, publish and state store failures."""
    return Response(
        content=get_metrics_bytes(),
        media_type=get_metrics_content_type(),
    )
