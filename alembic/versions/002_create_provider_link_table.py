"""Create provider_link table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "provider_link",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("oauth_provider", sa.String(length=32), nullable=False),
        sa.Column("oauth_provider_id", sa.String(length=256), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("oauth_provider", "oauth_provider_id", name="uq_provider_link_identity"),
        sa.UniqueConstraint("user_id", "oauth_provider", name="uq_provider_link_user_provider"),
    )
    op.create_index(op.f("ix_provider_link_user_id"), "provider_link", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_provider_link_user_id"), table_name="provider_link")
    op.drop_table("provider_link")
