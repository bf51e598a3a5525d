"""Initial schema: registrations, partner submissions and site visits.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "registrations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("whatsapp_contact", sa.String(length=50), nullable=False),
        sa.Column("country_of_origin", sa.String(length=100), nullable=False),
        sa.Column("country_of_residence", sa.String(length=100), nullable=False),
        sa.Column("group_type", sa.String(length=16), nullable=False),
        sa.Column("location", postgresql.JSONB(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("group_type IN ('local', 'diaspora')", name="ck_registrations_group_type"),
        sa.CheckConstraint("status IN ('pending', 'active', 'verified')", name="ck_registrations_status"),
    )
    op.create_index("ix_registrations_email", "registrations", ["email"], unique=False)
    op.create_index("ix_registrations_country_of_residence", "registrations", ["country_of_residence"], unique=False)
    op.create_index("ix_registrations_created_at", "registrations", ["created_at"], unique=False)

    op.create_table(
        "partner_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("linkedin", sa.String(length=500), nullable=True),
        sa.Column("org_name", sa.String(length=200), nullable=False),
        sa.Column("org_type", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=100), nullable=True),
        sa.Column("org_website", sa.String(length=500), nullable=True),
        sa.Column("org_social_media", sa.String(length=500), nullable=True),
        sa.Column("partnership_focus", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("other_focus", sa.Text(), nullable=True),
        sa.Column("about_work", sa.Text(), nullable=True),
        sa.Column("why_partner", sa.Text(), nullable=True),
        sa.Column("how_contribute", sa.Text(), nullable=True),
        sa.Column("what_expect", sa.Text(), nullable=True),
        sa.Column("additional_notes", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_partner_submissions_status"),
    )
    op.create_index("ix_partner_submissions_email", "partner_submissions", ["email"], unique=False)
    op.create_index("ix_partner_submissions_created_at", "partner_submissions", ["created_at"], unique=False)

    op.create_table(
        "visits",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("page", sa.String(length=200), nullable=True),
        sa.Column("referrer", sa.String(length=500), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("location", postgresql.JSONB(), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("region", sa.String(length=100), nullable=True),
        sa.Column("timezone", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_visits_page", "visits", ["page"], unique=False)
    op.create_index("ix_visits_country", "visits", ["country"], unique=False)
    op.create_index("ix_visits_created_at", "visits", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_visits_created_at", table_name="visits")
    op.drop_index("ix_visits_country", table_name="visits")
    op.drop_index("ix_visits_page", table_name="visits")
    op.drop_table("visits")

    op.drop_index("ix_partner_submissions_created_at", table_name="partner_submissions")
    op.drop_index("ix_partner_submissions_email", table_name="partner_submissions")
    op.drop_table("partner_submissions")

    op.drop_index("ix_registrations_created_at", table_name="registrations")
    op.drop_index("ix_registrations_country_of_residence", table_name="registrations")
    op.drop_index("ix_registrations_email", table_name="registrations")
    op.drop_table("registrations")
