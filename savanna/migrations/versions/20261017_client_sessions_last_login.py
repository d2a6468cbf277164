"""shared per-client sessions and profile last login

Revision ID: 0002_client_sessions
Revises: 0001_initial
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_client_sessions"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "auth_client_session",
        sa.Column("client_id", sa.String(length=64), primary_key=True),
        sa.Column("revision", sa.String(length=32), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("access_token", sa.Text()),
        sa.Column("refresh_token", sa.Text()),
        sa.Column("expires_at", sa.Integer()),
        sa.Column("is_demo", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_metadata", sa.JSON(), nullable=False),
        sa.Column("demo_profile", sa.JSON()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
    )
    with op.batch_alter_table("user_profiles") as batch_op:
        batch_op.add_column(sa.Column("last_login_date", sa.DateTime(), nullable=True))


def downgrade():
    with op.batch_alter_table("user_profiles") as batch_op:
        batch_op.drop_column("last_login_date")
    op.drop_table("auth_client_session")
