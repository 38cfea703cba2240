from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK


class Location(Base):
    """Catalog location."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    coordinates: Mapped[str] = mapped_column(String(50), nullable=False)  # "latitude,longitude"
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    subcategories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)  # bare names: ["drama"]
    region: Mapped[str | None] = mapped_column(String(100), nullable=True)  # city
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def interest_tokens(self) -> set[str]:
        """Lower-cased category plus one "category:subcategory" token per subcategory."""
        category = self.category.strip().lower()
        return {category} | {f"{category}:{sub.strip().lower()}" for sub in self.subcategories or []}

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name={self.name}, category={self.category})>"
