"""Create entity_mapping and pending_listing tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 00:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "entity_mapping",
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("local_id", sa.String(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("kind", "local_id", name=op.f("pk_entity_mapping")),
    )
    op.create_index(
        "ix_entity_mapping_external_id", "entity_mapping", ["external_id"], unique=False
    )
    op.create_table(
        "pending_listing",
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("local_id", sa.String(), nullable=False),
        sa.Column("snapshot", sa.Text(), nullable=False),
        sa.Column("enqueued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("kind", "local_id", name=op.f("pk_pending_listing")),
    )


def downgrade() -> None:
    op.drop_table("pending_listing")
    op.drop_index("ix_entity_mapping_external_id", table_name="entity_mapping")
    op.drop_table("entity_mapping")
