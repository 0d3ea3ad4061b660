"""Seed the sites served by the built-in scrapers

Revision ID: 002_seed_sites
Revises: 001_lunch_schema
Create Date: 2026-10-17

Sweden (kr) / Gothenburg (gbg) / Lindholmen (lh) and Majorna (majorna).
"""

from typing import Sequence, Union

from alembic import op

# revision identifiers
revision: str = "002_seed_sites"
down_revision: Union[str, None] = "001_lunch_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        "INSERT INTO country (name, url_id, currency_suffix) VALUES ('Sweden', 'se', 'kr')"
    )
    op.execute(
        """
        INSERT INTO city (country_id, name, url_id)
        SELECT country_id, 'Gothenburg', 'gbg' FROM country WHERE url_id = 'se'
        """
    )
    op.execute(
        """
        INSERT INTO site (city_id, name, url_id, comment)
        SELECT city.city_id, v.name, v.url_id, v.comment
        FROM city
        JOIN country ON country.country_id = city.country_id
        CROSS JOIN (VALUES
            ('Lindholmen', 'lh', 'Lindholmen Science Park'),
            ('Majorna', 'majorna', NULL)
        ) AS v(name, url_id, comment)
        WHERE country.url_id = 'se' AND city.url_id = 'gbg'
        """
    )


def downgrade() -> None:
    op.execute("DELETE FROM country WHERE url_id = 'se'")
