"""Lunch Scraper — City Model"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import TIMESTAMP, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from lunchscraper.models.base import Base


class City(Base):
    __tablename__ = "city"
    __table_args__ = (UniqueConstraint("country_id", "url_id", name="uq_city_country_url_id"),)

    city_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    country_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("country.country_id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    url_id: Mapped[str] = mapped_column(String, nullable=False, comment="Unique per country, e.g. 'gbg'")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<City url_id={self.url_id!r} name={self.name!r}>"
