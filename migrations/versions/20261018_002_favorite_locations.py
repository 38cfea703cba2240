"""Add favorite_locations

Revision ID: 20261018_002
Revises: 20261018_001
Create Date: 2026-10-18 16:00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_002"
down_revision: str | None = "20261018_001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # One row per (user, location); accepting a suggestion inserts-or-ignores here
    op.create_table(
        "favorite_locations",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("location_id", sa.BigInteger(), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "location_id"),
    )
    op.create_index(
        "idx_favorite_locations_location", "favorite_locations", ["location_id", "user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("idx_favorite_locations_location", table_name="favorite_locations")
    op.drop_table("favorite_locations")
