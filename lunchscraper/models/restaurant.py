"""
Lunch Scraper — Restaurant Model

Rows are written only by SiteStore.apply, which replaces a restaurant (and
its dishes) by name on every scrape. Ids therefore change every cycle.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import TIMESTAMP, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from lunchscraper.models.base import Base


class Restaurant(Base):
    __tablename__ = "restaurant"

    restaurant_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("site.site_id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    comment: Mapped[str | None] = mapped_column(String, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    url: Mapped[str | None] = mapped_column(String, nullable=True)
    map_url: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        comment="When the menu was scraped",
    )

    def __repr__(self) -> str:
        return f"<Restaurant name={self.name!r} site_id={self.site_id!r}>"
