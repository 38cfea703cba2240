from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK


class Notification(Base):
    """In-app notification; the payload shape depends on ``kind``."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)  # like, match, location_suggestion
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    delivery_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending"
    )  # pending, delivered, failed, skipped
    delivery_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("kind IN ('like','match','location_suggestion')", name="chk_notification_kind"),
        CheckConstraint(
            "delivery_status IN ('pending','delivered','failed','skipped')", name="chk_notification_delivery"
        ),
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, recipient_id={self.recipient_id}, kind={self.kind})>"
