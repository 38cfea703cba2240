"""Webhook worker consuming the notification delivery stream."""

import asyncio
import logging
import socket
import time
from collections.abc import Callable
from typing import Any

import httpx
import redis.asyncio as redis

from core.config import settings
from core.db import AsyncSessionLocal
from core.metrics import delivery_reclaimed_total
from core.redis import DELIVERY_DEAD_STREAM, DELIVERY_GROUP, DELIVERY_STREAM, close_redis, get_redis
from services.notifications import NotificationCenter
from services.webhooks import WebhookConfigStore, WebhookDispatcher

logger = logging.getLogger(__name__)


class WebhookWorker:
    """
    Worker for delivering queued notifications from Redis.

    Besides reading new stream entries it periodically reclaims entries left
    unacknowledged by a crashed consumer (XAUTOCLAIM) and queues again
    notifications that are still pending in the database.
    """

    def __init__(
        self,
        dispatcher: WebhookDispatcher,
        redis_client: redis.Redis | None = None,
        consumer_name: str | None = None,
        batch_size: int = 10,
        *,
        reclaim_idle_seconds: float | None = None,
        sweep_age_seconds: float | None = None,
        maintenance_interval_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.dispatcher = dispatcher
        self.redis_client = redis_client
        self.consumer_name = consumer_name or f"dispatcher-{socket.gethostname()}"
        self.batch_size = batch_size
        self.reclaim_idle_seconds = (
            reclaim_idle_seconds if reclaim_idle_seconds is not None else settings.delivery_reclaim_idle_seconds
        )
        self.sweep_age_seconds = (
            sweep_age_seconds if sweep_age_seconds is not None else settings.delivery_sweep_age_seconds
        )
        self.maintenance_interval_seconds = (
            maintenance_interval_seconds
            if maintenance_interval_seconds is not None
            else settings.delivery_maintenance_interval_seconds
        )
        self.clock = clock
        self.running = False
        self._last_maintenance: float | None = None

    async def start(self) -> None:
        """Start the webhook worker."""
        self.running = True
        if self.redis_client is None:
            self.redis_client = await get_redis()

        logger.info(f"Webhook worker {self.consumer_name} started, consuming from {DELIVERY_STREAM}...")

        # Create consumer group if not exists
        try:
            await self.redis_client.xgroup_create(
                name=DELIVERY_STREAM, groupname=DELIVERY_GROUP, id="0", mkstream=True
            )
            logger.info(f"Created consumer group: {DELIVERY_GROUP}")
        except Exception as e:
            if "BUSYGROUP" not in str(e):
                logger.error(f"Error creating group: {e}")

        while self.running:
            try:
                await self.maybe_run_maintenance()

                messages = await self.redis_client.xreadgroup(
                    groupname=DELIVERY_GROUP,
                    consumername=self.consumer_name,
                    streams={DELIVERY_STREAM: ">"},
                    count=self.batch_size,
                    block=5000,  # 5 seconds timeout
                )

                for _stream_key, stream_messages in messages or []:
                    await self.handle_batch(stream_messages)

            except Exception as e:
                logger.error(f"Error in webhook worker loop: {e}")
                await asyncio.sleep(5)

    async def stop(self) -> None:
        """Stop the webhook worker."""
        self.running = False

    async def handle_batch(self, stream_messages: list[tuple[str, dict[str, str]]]) -> None:
        # Each delivery may sit in backoff; run the batch concurrently
        await asyncio.gather(*(self.handle_message(message_id, data) for message_id, data in stream_messages))

    async def handle_message(self, message_id: str, message_data: dict[str, str]) -> None:
        """Deliver one queued notification and acknowledge it."""
        try:
            notification_id = int(message_data["notification_id"])
            outcome = await self.dispatcher.deliver(notification_id)
            logger.debug(f"Message {message_id}: notification {notification_id} -> {outcome}")
        except Exception as e:
            logger.error(f"Error processing message {message_id}: {e}")
            # Move to dead letter queue
            await self.redis_client.xadd(DELIVERY_DEAD_STREAM, message_data)

        await self.redis_client.xack(DELIVERY_STREAM, DELIVERY_GROUP, message_id)  # type: ignore[no-untyped-call]

    async def maybe_run_maintenance(self) -> None:
        """Run reclaim and sweep when the maintenance interval has elapsed."""
        now = self.clock()
        if self._last_maintenance is not None and now - self._last_maintenance < self.maintenance_interval_seconds:
            return
        self._last_maintenance = now

        await self.reclaim_stalled()
        await self.sweep_pending()

    async def reclaim_stalled(self) -> int:
        """
        Take over entries another consumer read but never acknowledged.

        Only entries idle longer than the worst-case retry window are claimed,
        so deliveries still in backoff are left alone.

        Returns:
            Number of reclaimed entries processed
        """
        result: Any = await self.redis_client.xautoclaim(
            DELIVERY_STREAM,
            DELIVERY_GROUP,
            self.consumer_name,
            min_idle_time=int(self.reclaim_idle_seconds * 1000),
            start_id="0-0",
            count=self.batch_size,
        )
        # Redis returns [next_start_id, entries] or [next_start_id, entries, deleted_ids]
        claimed = [(message_id, data) for message_id, data in result[1] if data]
        if claimed:
            delivery_reclaimed_total.inc(len(claimed))
            logger.warning(f"Reclaimed {len(claimed)} stalled delivery entries")
            await self.handle_batch(claimed)
        return len(claimed)

    async def sweep_pending(self) -> int:
        """Queue again notifications still pending after the sweep age."""
        async with self.dispatcher.session_factory() as db:
            center = NotificationCenter(db, enqueue=self._enqueue)
            return await center.requeue_stale(self.sweep_age_seconds, limit=self.batch_size * 10)

    async def _enqueue(self, notification_id: int) -> str:
        return await self.redis_client.xadd(DELIVERY_STREAM, {"notification_id": str(notification_id)})


async def main() -> None:
    """Run webhook worker."""
    logging.basicConfig(level=logging.INFO)
    async with httpx.AsyncClient() as client:
        dispatcher = WebhookDispatcher(AsyncSessionLocal, WebhookConfigStore.from_settings(), client)
        worker = WebhookWorker(dispatcher)
        try:
            await worker.start()
        finally:
            await worker.stop()
            await close_redis()


if __name__ == "__main__":
    asyncio.run(main())
