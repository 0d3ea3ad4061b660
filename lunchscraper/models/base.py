"""
SQLAlchemy 2.0 async DeclarativeBase for Lunch Scraper.

All models inherit from this Base.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all Lunch Scraper database models."""
    pass
