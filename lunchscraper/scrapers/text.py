"""Small text helpers shared by the site scrapers."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")


def reduce_whitespace(s: str) -> str:
    """Collapse every run of whitespace into a single space."""
    return " ".join(s.split())


def parse_price(value: Any) -> Decimal:
    """
    Best-effort price parsing: "135 kr" -> 135, "89,50:-" -> 89.50.

    Anything without a leading number yields 0. Never negative.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            return Decimal("0")
        return price if price.is_finite() and price >= 0 else Decimal("0")

    match = _NUMBER.search(str(value))
    if match is None:
        return Decimal("0")
    return Decimal(match.group(0).replace(",", "."))


def name_key(name: str) -> str:
    """Case- and punctuation-insensitive key for matching restaurant names."""
    return "".join(ch for ch in name.casefold() if ch.isalnum())
