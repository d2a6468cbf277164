"""initial schema for Savanna Marketplace: accounts, organizations, profiles, events

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "auth_account",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("user_metadata", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("business_type", sa.String(length=64)),
        sa.Column("county", sa.String(length=64)),
        sa.Column("town", sa.String(length=64)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), index=True),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("first_name", sa.String(length=128)),
        sa.Column("last_name", sa.String(length=128)),
        sa.Column("user_type", sa.String(length=32), index=True),
        sa.Column("location", sa.String(length=128)),
        sa.Column("verification_level", sa.String(length=32), server_default="basic"),
        sa.Column("kyc_status", sa.String(length=32), server_default="pending"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("preferences", sa.JSON()),
        sa.Column("wildlife_profile", sa.JSON()),
        sa.Column("organization_id", sa.String(length=64), sa.ForeignKey("organizations.id"), index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_table(
        "event_record",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_type", sa.String(length=128), nullable=False, index=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("actor_ref", sa.String(length=64), index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
    )
    op.create_index("ix_event_record_actor_created_at", "event_record", ["actor_ref", "created_at"])


def downgrade():
    op.drop_index("ix_event_record_actor_created_at", table_name="event_record")
    op.drop_table("event_record")
    op.drop_table("user_profiles")
    op.drop_table("organizations")
    op.drop_table("auth_account")
