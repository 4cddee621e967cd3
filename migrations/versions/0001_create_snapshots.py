"""create snapshots table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_snapshots"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "snapshots",
        sa.Column("namespace", sa.String(length=64), primary_key=True),
        sa.Column("payload", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("snapshots")
