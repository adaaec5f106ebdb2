"""Initial schema: events, admins, items, subjects, locations, votes.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
        )
    return columns


def upgrade() -> None:
    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    # Public pages resolve events by slug
    op.create_index("ix_events_slug", "events", ["slug"], unique=True)
    op.create_index("ix_events_owner_id", "events", ["owner_id"])
    op.create_index("ix_events_created_at", "events", ["created_at"])

    # Admin grants
    op.create_table(
        "admins",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="editor"),
        *_timestamps(updated=False),
        sa.UniqueConstraint("event_id", "user_id", name="uq_admin_event_user"),
        sa.CheckConstraint("role IN ('editor', 'viewer')", name="check_admin_role"),
    )
    op.create_index("ix_admins_event_id", "admins", ["event_id"])
    op.create_index("ix_admins_user_id", "admins", ["user_id"])
    op.create_index("ix_admins_created_at", "admins", ["created_at"])

    # Items table
    op.create_table(
        "items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_slug", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("item_id", sa.String(100), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "item_slug", name="uq_item_event_slug"),
    )
    op.create_index("ix_items_event_id", "items", ["event_id"])
    op.create_index("ix_items_created_at", "items", ["created_at"])

    # Subjects table
    op.create_table(
        "subjects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_id", sa.String(36), sa.ForeignKey("items.id", ondelete="CASCADE"), nullable=True),
        sa.Column("label", sa.String(500), nullable=False, server_default=""),
        sa.Column("pos_label", sa.String(100), nullable=False, server_default="Yes"),
        sa.Column("neg_label", sa.String(100), nullable=False, server_default="No"),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_subjects_event_id", "subjects", ["event_id"])
    op.create_index("ix_subjects_item_id", "subjects", ["item_id"])
    op.create_index("ix_subjects_created_at", "subjects", ["created_at"])

    # Locations table
    op.create_table(
        "locations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lon", sa.Float(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_locations_event_id", "locations", ["event_id"])
    op.create_index("ix_locations_created_at", "locations", ["created_at"])
    op.create_index("ix_locations_zip_code", "locations", ["zip_code"])

    # Votes table: append-only, the hottest write path
    op.create_table(
        "votes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("subject_id", sa.String(36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("location_id", sa.String(36), sa.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("user_ip", sa.String(64), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lon", sa.Float(), nullable=True),
        sa.Column("choice", sa.Boolean(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_votes_user_id", "votes", ["user_id"])
    op.create_index("ix_votes_created_at", "votes", ["created_at"])
    # Batch aggregate: WHERE subject_id IN (...) [AND location_id = ?]
    op.create_index("ix_votes_subject_location", "votes", ["subject_id", "location_id"])
    # Time series: WHERE subject_id = ? AND created_at >= ? ORDER BY created_at
    op.create_index("ix_votes_subject_created", "votes", ["subject_id", "created_at"])


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_table("locations")
    op.drop_table("subjects")
    op.drop_table("items")
    op.drop_table("admins")
    op.drop_table("events")
