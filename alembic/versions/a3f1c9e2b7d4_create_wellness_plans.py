"""create wellness_plans

Revision ID: a3f1c9e2b7d4
Revises:
Create Date: 2026-10-19 10:12:31.204118
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "a3f1c9e2b7d4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "wellness_plans",
        sa.Column("id", sa.String(length=36), nullable=False),
        # issued by the external auth provider, not a local FK
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("cat_name", sa.String(length=255), nullable=False),
        sa.Column("cat_data", sa.JSON(), nullable=False),
        sa.Column("plan_content", sa.Text(), nullable=False),
        sa.Column("plan_data", sa.JSON(), nullable=False),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "cat_name", name="uq_wellness_plans_user_cat"),
    )
    op.create_index(op.f("ix_wellness_plans_user_id"), "wellness_plans", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_wellness_plans_user_id"), table_name="wellness_plans")
    op.drop_table("wellness_plans")
