from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK


class LocationSuggestion(Base):
    """A user's decision on a suggested location: pending -> accepted | rejected."""

    __tablename__ = "location_suggestions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    location_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("locations.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('pending','accepted','rejected')", name="chk_suggestion_status"),
        UniqueConstraint("user_id", "location_id", name="uq_suggestion_user_location"),
    )

    def __repr__(self) -> str:
        return f"<LocationSuggestion(user_id={self.user_id}, location_id={self.location_id}, status={self.status})>"
