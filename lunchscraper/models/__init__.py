"""
Models package — export all SQLAlchemy models.
"""

from lunchscraper.models.base import Base
from lunchscraper.models.city import City
from lunchscraper.models.country import Country
from lunchscraper.models.dish import Dish
from lunchscraper.models.restaurant import Restaurant
from lunchscraper.models.site import Site

__all__ = ["Base", "City", "Country", "Dish", "Restaurant", "Site"]
