"""Create the item store and event outbox tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from dmphub.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "dmp_item",
        sa.Column("pk", sa.String(), nullable=False),
        sa.Column("sk", sa.String(), nullable=False),
        sa.Column("provenance_identifier", sa.String(), nullable=True),
        sa.Column("modified", UTCDateTime(), nullable=True),
        sa.Column("body", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("pk", "sk", name=op.f("pk_dmp_item")),
    )
    op.create_index(
        "ix_dmp_item_provenance_identifier", "dmp_item", ["provenance_identifier"], unique=False
    )

    op.create_table(
        "record_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("identifier", sa.String(), nullable=False),
        sa.Column("version_key", sa.String(), nullable=False),
        sa.Column("owner_provenance_id", sa.String(), nullable=True),
        sa.Column("changed_by_owner", sa.Boolean(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("delivered_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_record_event")),
    )
    op.create_index(
        "ix_record_event_delivered_at", "record_event", ["delivered_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_record_event_delivered_at", table_name="record_event")
    op.drop_table("record_event")
    op.drop_index("ix_dmp_item_provenance_identifier", table_name="dmp_item")
    op.drop_table("dmp_item")
