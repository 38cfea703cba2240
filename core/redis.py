import redis.asyncio as redis

from core.config import settings

# Stream carrying notification ids to the webhook worker
DELIVERY_STREAM = "notifications.deliver"
DELIVERY_DEAD_STREAM = "notifications.dead"
DELIVERY_GROUP = "webhook-dispatchers"

_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Get Redis client instance."""
    global _redis_client
    if _redis_client is None:
        _redis_client = await redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


async def enqueue_delivery(notification_id: int) -> str:
    """
    Queue a notification for webhook delivery.

    Args:
        notification_id: Persisted notification ID

    Returns:
        Redis stream entry ID
    """
    redis_client = await get_redis()
    return await redis_client.xadd(DELIVERY_STREAM, {"notification_id": str(notification_id)})
