"""Initial schema: users, likes, dislikes, matches, notifications, locations, suggestions

Revision ID: 20261018_001
Revises:
Create Date: 2026-10-18 10:00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Users (read-side projection; profile CRUD is owned elsewhere)
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("interests", sa.JSON(), nullable=False),
        sa.Column("region", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_blocks",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("blocked_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("user_id <> blocked_id", name="chk_block_no_self"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["blocked_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "blocked_id"),
    )

    # Directed like edges; composite PK makes repeat likes no-ops
    op.create_table(
        "user_likes",
        sa.Column("liker_id", sa.BigInteger(), nullable=False),
        sa.Column("target_id", sa.BigInteger(), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("liker_id <> target_id", name="chk_like_no_self"),
        sa.ForeignKeyConstraint(["liker_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("liker_id", "target_id"),
    )
    op.create_index("idx_user_likes_target", "user_likes", ["target_id", "liker_id"], unique=False)

    op.create_table(
        "user_dislikes",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("target_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("until", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "target_id"),
    )
    op.create_index("idx_user_dislikes_until", "user_dislikes", ["until"], unique=False)

    # Matches keyed by the ordered pair (u_lo, u_hi)
    op.create_table(
        "matches",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("u_lo", sa.BigInteger(), nullable=False),
        sa.Column("u_hi", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("u_lo < u_hi", name="chk_match_ordered_pair"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("u_lo", "u_hi", name="uq_matches_pair"),
    )
    op.create_index(op.f("ix_matches_u_lo"), "matches", ["u_lo"], unique=False)
    op.create_index(op.f("ix_matches_u_hi"), "matches", ["u_hi"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("recipient_id", sa.BigInteger(), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("delivery_status", sa.String(length=16), nullable=False),
        sa.Column("delivery_attempts", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("kind IN ('like','match','location_suggestion')", name="chk_notification_kind"),
        sa.CheckConstraint(
            "delivery_status IN ('pending','delivered','failed','skipped')", name="chk_notification_delivery"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notifications_recipient_id"), "notifications", ["recipient_id"], unique=False)
    op.create_index(
        "idx_notifications_recipient_created", "notifications", ["recipient_id", "created_at"], unique=False
    )

    op.create_table(
        "locations",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("coordinates", sa.String(length=50), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("subcategories", sa.JSON(), nullable=False),
        sa.Column("region", sa.String(length=100), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_locations_category"), "locations", ["category"], unique=False)

    op.create_table(
        "location_suggestions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("location_id", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('pending','accepted','rejected')", name="chk_suggestion_status"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "location_id", name="uq_suggestion_user_location"),
    )
    op.create_index(op.f("ix_location_suggestions_user_id"), "location_suggestions", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_location_suggestions_user_id"), table_name="location_suggestions")
    op.drop_table("location_suggestions")
    op.drop_index(op.f("ix_locations_category"), table_name="locations")
    op.drop_table("locations")
    op.drop_index("idx_notifications_recipient_created", table_name="notifications")
    op.drop_index(op.f("ix_notifications_recipient_id"), table_name="notifications")
    op.drop_table("notifications")
    op.drop_index(op.f("ix_matches_u_hi"), table_name="matches")
    op.drop_index(op.f("ix_matches_u_lo"), table_name="matches")
    op.drop_table("matches")
    op.drop_index("idx_user_dislikes_until", table_name="user_dislikes")
    op.drop_table("user_dislikes")
    op.drop_index("idx_user_likes_target", table_name="user_likes")
    op.drop_table("user_likes")
    op.drop_table("user_blocks")
    op.drop_table("users")
