"""Initial schema — append-only disbursement memo revisions.

Revision ID: 001_disbursement_memos
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_disbursement_memos"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "disbursement_memos",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", sa.String(40), nullable=False),
        sa.Column("revision", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("record", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("application_id", "revision", name="uq_memo_revision"),
    )
    op.create_index(
        "ix_disbursement_memos_application_id", "disbursement_memos", ["application_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_disbursement_memos_application_id", table_name="disbursement_memos")
    op.drop_table("disbursement_memos")
