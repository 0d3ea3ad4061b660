"""
Lunch Scraper — Site Model

A site is an area with a cluster of lunch restaurants (a science park, a
neighbourhood). Each scraper serves exactly one site, addressed by the url
ids of its country, city and site.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import TIMESTAMP, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from lunchscraper.models.base import Base


class Site(Base):
    __tablename__ = "site"
    __table_args__ = (UniqueConstraint("city_id", "url_id", name="uq_site_city_url_id"),)

    site_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    city_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("city.city_id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    url_id: Mapped[str] = mapped_column(String, nullable=False, comment="Unique per city, e.g. 'lh'")
    comment: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Site url_id={self.url_id!r} name={self.name!r}>"
