"""
Lunch Scraper — Country Model

Top of the location hierarchy: country -> city -> site -> restaurant -> dish.
The currency suffix is what prices are displayed with ("kr" for Sweden).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import TIMESTAMP, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from lunchscraper.models.base import Base


class Country(Base):
    __tablename__ = "country"

    country_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    url_id: Mapped[str] = mapped_column(
        String, unique=True, nullable=False, comment="Short id used in urls and site keys, e.g. 'se'"
    )
    currency_suffix: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Country url_id={self.url_id!r} name={self.name!r}>"
