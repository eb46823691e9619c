"""Disbursement Memo ORM — append-only store of memo revisions.

Invariants:
    - (application_id, revision) is unique: one row per revision
    - record holds the camelCase memo record exactly as core.memo.memo_to_record produced it
    - Rows are never updated; a status change inserts revision + 1

Design Decisions:
    - JSON column for the record: the memo exchange format IS the storage format
    - status/revision denormalized out of the record for lookups and ordering
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from smartloan.db.base import Base


class DisbursementMemoRow(Base):
    """One revision of a disbursement memo."""
    __tablename__ = "disbursement_memos"
    __table_args__ = (
        UniqueConstraint("application_id", "revision", name="uq_memo_revision"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[str] = mapped_column(
        String(40), nullable=False, index=True,
    )
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(40), nullable=False)
    record: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
