"""Create canna_log_entries table.

Revision ID: 20261019_initial_entries
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261019_initial_entries"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "canna_log_entries",
        sa.Column("entry_id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "stage",
            sa.String(length=32),
            nullable=False,
            server_default="SEED",
        ),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "images",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.CheckConstraint(
            "stage IN ('SEED', 'VEGETATIVE', 'FLOWERING', 'HARVEST', 'CURING')",
            name="ck_canna_log_entries_stage",
        ),
    )
    op.create_index(
        "ix_canna_log_entries_owner_timestamp",
        "canna_log_entries",
        ["owner_id", sa.text("timestamp DESC")],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_canna_log_entries_owner_timestamp", table_name="canna_log_entries"
    )
    op.drop_table("canna_log_entries")
