"""Create push status, job status and installation tables.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create status tables with their lookup indexes."""
    op.create_table(
        "push_statuses",
        sa.Column("object_id", sa.String(32), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("push_time", sa.String(32), nullable=True),
        sa.Column("query", sa.Text(), nullable=True),
        sa.Column("payload", sa.Text(), nullable=True),
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("expiry", JSONB, nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("num_sent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("num_opened", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("num_failed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sent_per_type", JSONB, nullable=False, server_default="{}"),
        sa.Column("failed_per_type", JSONB, nullable=False, server_default="{}"),
        sa.Column("push_hash", sa.String(32), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("acl", JSONB, nullable=False, server_default="{}"),
    )
    op.create_index("ix_push_statuses_status", "push_statuses", ["status"])
    op.create_index("ix_push_statuses_push_hash", "push_statuses", ["push_hash"])

    op.create_table(
        "job_statuses",
        sa.Column("object_id", sa.String(32), primary_key=True),
        sa.Column("job_name", sa.String(100), nullable=False),
        sa.Column("params", JSONB, nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acl", JSONB, nullable=False, server_default="{}"),
    )
    op.create_index("ix_job_statuses_job_name", "job_statuses", ["job_name"])

    op.create_table(
        "installations",
        sa.Column("object_id", sa.String(32), primary_key=True),
        sa.Column("device_token", sa.Text(), nullable=True),
        sa.Column("device_type", sa.String(20), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_installations_device_token", "installations", ["device_token"])


def downgrade() -> None:
    """Drop status tables."""
    op.drop_index("ix_installations_device_token", table_name="installations")
    op.drop_table("installations")
    op.drop_index("ix_job_statuses_job_name", table_name="job_statuses")
    op.drop_table("job_statuses")
    op.drop_index("ix_push_statuses_push_hash", table_name="push_statuses")
    op.drop_index("ix_push_statuses_status", table_name="push_statuses")
    op.drop_table("push_statuses")
