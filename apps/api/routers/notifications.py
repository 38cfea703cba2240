"""Notification inbox endpoints."""

from fastapi import APIRouter, Depends

from apps.api.deps import get_notification_center
from apps.api.errors import unwrap
from apps.api.schemas import NotificationOut
from core.auth import caller_auth
from services.notifications import NotificationCenter

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    notifications: NotificationCenter = Depends(get_notification_center),
    caller_id: int = Depends(caller_auth),
) -> list[NotificationOut]:
    """Caller's notifications, newest first."""
    rows = await notifications.list_for(caller_id, unread_only=unread_only)
    return [NotificationOut.from_model(row) for row in rows]


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    notifications: NotificationCenter = Depends(get_notification_center),
    caller_id: int = Depends(caller_auth),
) -> NotificationOut:
    """
    Mark one of the caller's notifications as read. Idempotent.

    Raises:
        HTTPException: 404 if unknown, 403 if it belongs to another user
    """
    notification = unwrap(await notifications.mark_as_read(notification_id, caller_id))
    return NotificationOut.from_model(notification)
