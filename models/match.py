from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK


class Match(Base):
    """Mutual-like match between two users."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # Ordered pair for deduplication: u_lo = min(user_a, user_b), u_hi = max(user_a, user_b)
    u_lo: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    u_hi: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Also rules out self-matching
        CheckConstraint("u_lo < u_hi", name="chk_match_ordered_pair"),
        # At most one match per unordered pair, enforced by storage across all service instances
        UniqueConstraint("u_lo", "u_hi", name="uq_matches_pair"),
    )

    def partner_of(self, user_id: int) -> int:
        return self.u_hi if user_id == self.u_lo else self.u_lo

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, u_lo={self.u_lo}, u_hi={self.u_hi})>"
