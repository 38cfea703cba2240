"""Health check endpoints."""

import logging

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db, get_redis_client
from core.redis import DELIVERY_DEAD_STREAM, DELIVERY_STREAM

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)


@router.get("")
async def health_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "healthy", "service": "geostud-discovery"}


@router.get("/db")
async def health_check_db(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """Database health check."""
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}


@router.get("/redis")
async def health_check_redis(redis_client: redis.Redis = Depends(get_redis_client)) -> dict[str, str | int]:
    """Delivery queue health: Redis reachability and stream backlog."""
    try:
        await redis_client.ping()
        backlog = await redis_client.xlen(DELIVERY_STREAM)
        dead = await redis_client.xlen(DELIVERY_DEAD_STREAM)
        return {"status": "healthy", "redis": "connected", "queued_deliveries": backlog, "dead_letters": dead}
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        return {"status": "unhealthy", "redis": "disconnected", "error": str(e)}
