from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class UserLike(Base):
    """Directed like edge; the composite primary key makes inserts idempotent."""

    __tablename__ = "user_likes"

    liker_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    target_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("liker_id <> target_id", name="chk_like_no_self"),
        # Reverse-edge lookups go target -> liker
        Index("idx_user_likes_target", "target_id", "liker_id"),
    )

    def __repr__(self) -> str:
        return f"<UserLike(liker_id={self.liker_id}, target_id={self.target_id})>"
