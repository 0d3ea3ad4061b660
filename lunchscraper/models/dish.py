"""Lunch Scraper — Dish Model"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import DECIMAL, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from lunchscraper.models.base import Base


class Dish(Base):
    __tablename__ = "dish"

    dish_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("restaurant.restaurant_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    comment: Mapped[str | None] = mapped_column(String, nullable=True)
    tags: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Comma-separated, sorted"
    )
    price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False, default=Decimal("0"))

    @property
    def tag_list(self) -> list[str]:
        return [t for t in (self.tags or "").split(",") if t]

    def __repr__(self) -> str:
        return f"<Dish name={self.name!r} price={self.price!r}>"
