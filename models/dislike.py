"""Dislike model for suppressing users from candidate lists."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class UserDislike(Base):
    """Directional suppression; ``until`` is NULL for a permanent dislike."""

    __tablename__ = "user_dislikes"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    target_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    until: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (Index("idx_user_dislikes_until", "until"),)

    def __repr__(self) -> str:
        return f"<UserDislike(user_id={self.user_id}, target_id={self.target_id}, until={self.until})>"
