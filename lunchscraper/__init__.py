"""Lunch Scraper — scheduled lunch-menu collection and serving."""

__version__ = "0.1.0"
