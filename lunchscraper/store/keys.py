"""Logical addressing of a site by the url ids of its country, city and site."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SiteKey(BaseModel):
    """(country, city, site) url-id triple, e.g. se/gbg/lh."""

    model_config = ConfigDict(frozen=True)

    country: str
    city: str
    site: str

    @classmethod
    def parse(cls, value: str) -> SiteKey:
        parts = [p for p in value.strip().strip("/").split("/")]
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"site key must look like 'country/city/site', got {value!r}")
        return cls(country=parts[0], city=parts[1], site=parts[2])

    def __str__(self) -> str:
        return f"{self.country}/{self.city}/{self.site}"
