"""Initial schema: users, vendors, events, event_registrations.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users mirror the marketplace accounts; only role and is_active matter here
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'customer'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("role IN ('customer', 'vendor', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "vendors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("logo_url", sa.String(500), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default=sa.text("'other'")),
        sa.Column("event_type", sa.String(20), nullable=False, server_default=sa.text("'physical'")),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("current_participants", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("current_participants >= 0", name="check_participants_non_negative"),
        sa.CheckConstraint("max_capacity IS NULL OR max_capacity > 0", name="check_max_capacity_positive"),
        sa.CheckConstraint(
            "max_capacity IS NULL OR current_participants <= max_capacity",
            name="check_participants_lte_capacity",
        ),
        sa.CheckConstraint("end_date > start_date", name="check_end_after_start"),
        sa.CheckConstraint(
            "registration_deadline IS NULL OR registration_deadline < start_date",
            name="check_deadline_before_start",
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'ongoing', 'completed', 'cancelled')",
            name="check_event_status",
        ),
    )
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_category", "events", ["category"])
    # Listings are ordered by start date
    op.create_index("ix_events_start_date", "events", ["start_date"])

    op.create_table(
        "event_registrations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vendor_id", sa.String(36), sa.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "vendor_id", name="uq_event_vendor_registration"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'waitlist', 'cancelled', 'attended')",
            name="check_registration_status",
        ),
        sa.CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="check_rating_range"),
    )
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])
    op.create_index("ix_event_registrations_vendor_id", "event_registrations", ["vendor_id"])
    # FIFO waitlist lookup: WHERE event_id = ? AND status = 'waitlist' ORDER BY registration_date
    op.create_index(
        "ix_registrations_event_status_date",
        "event_registrations",
        ["event_id", "status", "registration_date"],
    )


def downgrade() -> None:
    op.drop_table("event_registrations")
    op.drop_table("events")
    op.drop_table("vendors")
    op.drop_table("users")
