"""Response models shared by the routers."""

from datetime import datetime

from pydantic import BaseModel

from models.location import Location
from models.notification import Notification
from services.notifications import NotificationPayload, load_payload


class LocationOut(BaseModel):
    id: int
    name: str
    coordinates: str
    category: str
    subcategories: list[str]
    region: str | None
    rating: float | None

    @classmethod
    def from_model(cls, location: Location) -> "LocationOut":
        return cls(
            id=location.id,
            name=location.name,
            coordinates=location.coordinates,
            category=location.category,
            subcategories=list(location.subcategories or []),
            region=location.region,
            rating=location.rating,
        )


class NotificationOut(BaseModel):
    id: int
    recipient: int
    is_read: bool
    delivery_status: str
    created_at: datetime
    payload: NotificationPayload

    @classmethod
    def from_model(cls, notification: Notification) -> "NotificationOut":
        return cls(
            id=notification.id,
            recipient=notification.recipient_id,
            is_read=notification.is_read,
            delivery_status=notification.delivery_status,
            created_at=notification.created_at,
            payload=load_payload(notification),
        )


class PageMeta(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous: bool
    has_next: bool
