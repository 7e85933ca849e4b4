"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2025-06-02

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Channels table
    op.create_table(
        "channels",
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("remote_id", sa.String(64), nullable=True),
        sa.Column("visible", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("slug"),
    )

    # Media items table
    op.create_table(
        "media_items",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("content_type", sa.String(50), nullable=True),
        sa.Column("duration", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("remote_id", sa.String(64), nullable=True),
        sa.Column("image", sa.String(1024), nullable=True),
        sa.Column("channel_slug", sa.String(255), nullable=False),
        sa.Column("remote_url", sa.String(512), nullable=True),
        # Engagement counters
        sa.Column("views", sa.BigInteger(), server_default="0"),
        sa.Column("likes", sa.BigInteger(), server_default="0"),
        sa.Column("comments", sa.BigInteger(), server_default="0"),
        sa.Column("external_platform_url", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["channel_slug"], ["channels.slug"]),
    )
    op.create_index("ix_media_items_channel_slug", "media_items", ["channel_slug"])
    op.create_index("ix_media_items_date", "media_items", ["date"])

    # Daily channel statistics table
    op.create_table(
        "channel_statistics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("channel_slug", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("subscriber_count", sa.BigInteger(), server_default="0"),
        sa.Column("total_channel_views", sa.BigInteger(), server_default="0"),
        sa.Column("total_videos", sa.BigInteger(), server_default="0"),
        sa.Column("calculated_total_likes", sa.BigInteger(), server_default="0"),
        sa.Column("calculated_total_comments", sa.BigInteger(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["channel_slug"], ["channels.slug"]),
        sa.UniqueConstraint("channel_slug", "date", name="uq_channel_statistics_day"),
    )
    op.create_index("ix_channel_statistics_channel_slug", "channel_statistics", ["channel_slug"])


def downgrade() -> None:
    op.drop_index("ix_channel_statistics_channel_slug", table_name="channel_statistics")
    op.drop_table("channel_statistics")
    op.drop_index("ix_media_items_date", table_name="media_items")
    op.drop_index("ix_media_items_channel_slug", table_name="media_items")
    op.drop_table("media_items")
    op.drop_table("channels")
