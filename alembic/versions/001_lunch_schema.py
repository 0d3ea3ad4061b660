"""Create the lunch location hierarchy: country, city, site, restaurant, dish

Revision ID: 001_lunch_schema
Revises:
Create Date: 2026-10-17

Every child row references its parent with ON DELETE CASCADE.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers
revision: str = "001_lunch_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "country",
        _id_column("country_id"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("url_id", sa.String(), nullable=False, unique=True),
        sa.Column("currency_suffix", sa.String(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "city",
        _id_column("city_id"),
        sa.Column(
            "country_id",
            UUID(as_uuid=True),
            sa.ForeignKey("country.country_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("url_id", sa.String(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("country_id", "url_id", name="uq_city_country_url_id"),
    )
    op.create_index("ix_city_country_id", "city", ["country_id"])

    op.create_table(
        "site",
        _id_column("site_id"),
        sa.Column(
            "city_id",
            UUID(as_uuid=True),
            sa.ForeignKey("city.city_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("url_id", sa.String(), nullable=False),
        sa.Column("comment", sa.String(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("city_id", "url_id", name="uq_site_city_url_id"),
    )
    op.create_index("ix_site_city_id", "site", ["city_id"])

    op.create_table(
        "restaurant",
        _id_column("restaurant_id"),
        sa.Column(
            "site_id",
            UUID(as_uuid=True),
            sa.ForeignKey("site.site_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("comment", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("url", sa.String(), nullable=True),
        sa.Column("map_url", sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_restaurant_site_id", "restaurant", ["site_id"])
    # apply() deletes by (site_id, name)
    op.create_index("ix_restaurant_site_id_name", "restaurant", ["site_id", "name"])

    op.create_table(
        "dish",
        _id_column("dish_id"),
        sa.Column(
            "restaurant_id",
            UUID(as_uuid=True),
            sa.ForeignKey("restaurant.restaurant_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("comment", sa.String(), nullable=True),
        sa.Column("tags", sa.String(), nullable=True),
        sa.Column("price", sa.DECIMAL(10, 2), nullable=False, server_default="0"),
    )
    op.create_index("ix_dish_restaurant_id", "dish", ["restaurant_id"])


def downgrade() -> None:
    op.drop_table("dish")
    op.drop_table("restaurant")
    op.drop_table("site")
    op.drop_table("city")
    op.drop_table("country")
