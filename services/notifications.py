"""Notification persistence, read state and hand-off to asynchronous delivery."""

import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.metrics import (
    notifications_created_total,
    notifications_enqueue_errors_total,
    notifications_requeued_total,
)
from core.redis import enqueue_delivery
from models.notification import Notification
from services.errors import Failure

logger = logging.getLogger(__name__)


class LikePayload(BaseModel):
    kind: Literal["like"] = "like"
    from_user: int
    message: str | None = None


class MatchPayload(BaseModel):
    kind: Literal["match"] = "match"
    match_id: int
    partner: int


class LocationSuggestionPayload(BaseModel):
    kind: Literal["location_suggestion"] = "location_suggestion"
    location_id: int


NotificationPayload = Annotated[
    LikePayload | MatchPayload | LocationSuggestionPayload,
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter[NotificationPayload] = TypeAdapter(NotificationPayload)


def load_payload(notification: Notification) -> NotificationPayload:
    """Rebuild the typed payload from a stored row."""
    return _payload_adapter.validate_python({**notification.payload, "kind": notification.kind})


Enqueue = Callable[[int], Awaitable[Any]]


class NotificationCenter:
    """Persists notifications and queues them for webhook delivery."""

    def __init__(self, db: AsyncSession, enqueue: Enqueue = enqueue_delivery) -> None:
        self.db = db
        self.enqueue = enqueue

    def stage(self, recipient_id: int, payload: NotificationPayload) -> Notification:
        """
        Add a notification to the current transaction without committing.

        The caller commits and then passes the rows to ``dispatch``.
        """
        notification = Notification(
            recipient_id=recipient_id,
            kind=payload.kind,
            payload=payload.model_dump(exclude={"kind"}),
            is_read=False,
            delivery_status="pending",
            delivery_attempts=0,
            created_at=datetime.utcnow(),
        )
        self.db.add(notification)
        return notification

    async def dispatch(self, notifications: Iterable[Notification]) -> None:
        """Queue committed notifications for delivery. Queue errors never fail the caller."""
        for notification in notifications:
            notifications_created_total.labels(kind=notification.kind).inc()
            logger.info(
                f"Notification created: id={notification.id}, kind={notification.kind}, "
                f"recipient={notification.recipient_id}"
            )
            try:
                await self.enqueue(notification.id)
            except Exception as e:
                # Row is durable; recipient can still poll for it
                notifications_enqueue_errors_total.inc()
                logger.warning(f"Failed to queue notification {notification.id} for delivery: {e}")

    async def create(self, recipient_id: int, payload: NotificationPayload) -> Notification:
        """Persist a notification and queue delivery. Returns without waiting for delivery."""
        notification = self.stage(recipient_id, payload)
        await self.db.commit()
        await self.dispatch([notification])
        return notification

    async def create_location_suggestion(self, recipient_id: int, location_id: int) -> Notification:
        """Create a location suggestion, reusing an unread one for the same location."""
        result = await self.db.execute(
            select(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.kind == "location_suggestion",
                Notification.is_read.is_(False),
            )
            .order_by(Notification.id)
        )
        for existing in result.scalars().all():
            if existing.payload.get("location_id") == location_id:
                logger.debug(f"Location suggestion notification already exists: id={existing.id}")
                return existing

        return await self.create(recipient_id, LocationSuggestionPayload(location_id=location_id))

    async def mark_as_read(self, notification_id: int, requester_id: int) -> Notification | Failure:
        """
        Mark a notification read on behalf of its recipient.

        Args:
            notification_id: Notification ID
            requester_id: User asking for the change

        Returns:
            The notification, or a not_found / forbidden Failure
        """
        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            return Failure.not_found(f"Notification {notification_id} not found")

        if notification.recipient_id != requester_id:
            logger.warning(f"User {requester_id} tried to read notification {notification_id} of another user")
            return Failure.forbidden("Notification belongs to another user")

        if notification.is_read:
            logger.debug(f"Notification {notification_id} already read")
            return notification

        # Conditional update keeps is_read monotone under concurrent requests
        await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=datetime.utcnow())
        )
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def list_for(self, recipient_id: int, unread_only: bool = False, limit: int | None = None) -> list[Notification]:
        """Recipient's notifications, newest first."""
        query = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(
            limit or settings.notifications_list_limit
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def requeue_stale(self, older_than_seconds: float, limit: int = 100) -> int:
        """
        Queue delivery again for rows still ``pending`` after older_than_seconds.

        Covers rows whose enqueue failed and entries lost by the queue. The
        dispatcher skips rows that already have an outcome, so queuing a row
        twice does not resend a delivered notification.

        Returns:
            Number of rows queued
        """
        cutoff = datetime.utcnow() - timedelta(seconds=older_than_seconds)
        result = await self.db.execute(
            select(Notification.id)
            .where(Notification.delivery_status == "pending", Notification.created_at < cutoff)
            .order_by(Notification.id)
            .limit(limit)
        )

        queued = 0
        for notification_id in result.scalars().all():
            try:
                await self.enqueue(notification_id)
            except Exception as e:
                notifications_enqueue_errors_total.inc()
                logger.warning(f"Failed to queue stale notification {notification_id}: {e}")
                break
            queued += 1

        if queued:
            notifications_requeued_total.inc(queued)
            logger.info(f"Queued {queued} stale pending notifications for delivery")
        return queued
