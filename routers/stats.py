import asyncio
from fastapi import APIRouter, Request
from schemas.stats import HealthResponse, StatsResponse
from logging_config import get_logger

logger = get_logger(__name__)

stats_router = APIRouter(tags=["stats"])


@stats_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    redis_backend = request.app.state.redis_backend
    if redis_backend is None:
        redis_status = "disabled"
    else:
        # ping blocks, keep it off the event loop
        loop = asyncio.get_running_loop()
        alive = await loop.run_in_executor(None, redis_backend.ping)
        redis_status = "ok" if alive else "unavailable"
    return HealthResponse(status="ok", redis=redis_status)


@stats_router.get("/stats", response_model=StatsResponse)
async def get_stats(request: Request):
    """
    Current lobby counters for this instance.

    Returns:
    - online: connected clients
    - waiting: clients waiting for a partner
    - rooms: active two-party rooms
    """
    stats = request.app.state.broker.stats()
    logger.debug(f"Stats requested from {request.client.host if request.client else 'unknown'}: {stats}")
    return StatsResponse(**stats)
