from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class FavoriteLocation(Base):
    """Location saved by a user, either directly or by accepting a suggestion."""

    __tablename__ = "favorite_locations"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    location_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # "Who else saved this location" lookups
    __table_args__ = (Index("idx_favorite_locations_location", "location_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<FavoriteLocation(user_id={self.user_id}, location_id={self.location_id})>"
