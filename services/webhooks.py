"""Best-effort webhook delivery of notifications with signed requests and retries."""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import timezone

import httpx
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import settings
from core.metrics import webhook_attempts_total, webhook_deliveries_total, webhook_delivery_duration
from core.security import sign_body
from models.notification import Notification
from services.errors import UpstreamDeliveryFailure

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature"


@dataclass(frozen=True)
class WebhookConfig:
    url: str
    secret: str


class WebhookConfigStore:
    """Per-user delivery targets, falling back to the deployment-wide default."""

    def __init__(self, default: WebhookConfig | None = None, per_user: Mapping[int, WebhookConfig] | None = None) -> None:
        self.default = default
        self.per_user = dict(per_user or {})

    @classmethod
    def from_settings(cls) -> "WebhookConfigStore":
        default = WebhookConfig(settings.webhook_url, settings.webhook_secret) if settings.webhook_url else None
        return cls(default=default)

    def get(self, user_id: int) -> WebhookConfig | None:
        return self.per_user.get(user_id, self.default)


def build_webhook_body(notification: Notification) -> bytes:
    """Serialize the wire body; the signature covers exactly these bytes."""
    body = {
        "notificationId": notification.id,
        "type": notification.kind,
        "recipient": notification.recipient_id,
        "payload": notification.payload,
        "timestamp": notification.created_at.replace(tzinfo=timezone.utc).isoformat(),
    }
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


class WebhookDispatcher:
    """
    Delivers one notification to its recipient's webhook.

    Retries non-2xx responses, timeouts and transport errors with exponential
    backoff. After the last attempt the notification is marked ``failed``;
    it stays stored and pollable either way.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config_store: WebhookConfigStore,
        client: httpx.AsyncClient,
        *,
        timeout: float | None = None,
        max_attempts: int | None = None,
        backoff_base: float | None = None,
        backoff_factor: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session_factory = session_factory
        self.config_store = config_store
        self.client = client
        self.timeout = timeout if timeout is not None else settings.webhook_timeout_seconds
        self.max_attempts = max_attempts if max_attempts is not None else settings.webhook_max_attempts
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base_seconds
        self.backoff_factor = backoff_factor if backoff_factor is not None else settings.webhook_backoff_factor
        self.sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based): 1s, 2s, 4s, ..."""
        return self.backoff_base * self.backoff_factor ** (attempt - 1)

    async def deliver(self, notification_id: int) -> str:
        """
        Deliver a notification.

        Args:
            notification_id: Persisted notification ID

        Returns:
            Outcome: delivered, failed, skipped, missing, or duplicate when
            the notification already has a final delivery status
        """
        async with self.session_factory() as db:
            notification = await db.get(Notification, notification_id)
            if notification is None:
                logger.warning(f"Notification {notification_id} not found, nothing to deliver")
                return "missing"
            if notification.delivery_status != "pending":
                # Redelivered stream entry or swept row that already has an outcome
                logger.debug(f"Notification {notification_id} already {notification.delivery_status}, not resending")
                webhook_deliveries_total.labels(outcome="duplicate").inc()
                return "duplicate"
            config = self.config_store.get(notification.recipient_id)
            body = build_webhook_body(notification)

        if config is None or not config.url:
            logger.debug(f"No webhook configured for user {notification.recipient_id}, skipping")
            await self._record(notification_id, "skipped", 0)
            return "skipped"

        headers = {"Content-Type": "application/json", SIGNATURE_HEADER: sign_body(body, config.secret)}

        t0 = time.perf_counter()
        outcome = "failed"
        attempts = 0
        try:
            for attempt in range(1, self.max_attempts + 1):
                attempts = attempt
                try:
                    await self._attempt(config.url, body, headers)
                except UpstreamDeliveryFailure as e:
                    webhook_attempts_total.labels(result="error").inc()
                    logger.warning(
                        f"Webhook attempt {attempt}/{self.max_attempts} failed for notification "
                        f"{notification_id}: {e.reason}"
                    )
                    if attempt < self.max_attempts:
                        await self.sleep(self.backoff_delay(attempt))
                    continue

                webhook_attempts_total.labels(result="ok").inc()
                outcome = "delivered"
                break
        finally:
            webhook_delivery_duration.observe(time.perf_counter() - t0)

        if outcome == "delivered":
            logger.info(f"Webhook delivered: notification={notification_id}, attempts={attempts}")
        else:
            logger.error(
                f"Webhook delivery failed for notification {notification_id} after {attempts} attempts; "
                "notification remains available by polling"
            )

        await self._record(notification_id, outcome, attempts)
        return outcome

    async def _attempt(self, url: str, body: bytes, headers: dict[str, str]) -> None:
        try:
            response = await self.client.post(url, content=body, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise UpstreamDeliveryFailure(f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamDeliveryFailure(f"transport error: {e}") from e

        if not response.is_success:
            raise UpstreamDeliveryFailure(f"HTTP {response.status_code}", status_code=response.status_code)

    async def _record(self, notification_id: int, outcome: str, attempts: int) -> None:
        webhook_deliveries_total.labels(outcome=outcome).inc()
        async with self.session_factory() as db:
            await db.execute(
                update(Notification)
                .where(Notification.id == notification_id)
                .values(delivery_status=outcome, delivery_attempts=Notification.delivery_attempts + attempts)
            )
            await db.commit()
