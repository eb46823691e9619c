"""Memo Repository — SQLAlchemy implementation of core.repository_protocols.MemoRepository.

Invariants:
    - Append-only: INSERT per revision, never UPDATE or DELETE
    - latest() returns the highest revision; history() is oldest first
    - A duplicate (application_id, revision) is rejected by the unique constraint and
      surfaces as MemoConflictError (409): two writers raced on the same memo

Design Decisions:
    - Commits inside append(): a memo is the durable hand-off, not part of a larger unit of work
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smartloan.core.domain_types import ApplicationId
from smartloan.core.errors import MemoConflictError
from smartloan.models.disbursement_memo import DisbursementMemoRow

logger = logging.getLogger(__name__)


class SqlMemoRepository:
    """Stores memo records as JSON rows keyed by (application_id, revision)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, record: dict[str, Any]) -> None:
        row = DisbursementMemoRow(
            application_id=record["applicationId"],
            revision=record["revision"],
            status=record["status"],
            record=record,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"Memo revision already stored: {e}",
                extra={
                    "application_id": record["applicationId"],
                    "revision": record["revision"],
                },
            )
            raise MemoConflictError(record["applicationId"], record["revision"])

    async def latest(self, application_id: ApplicationId) -> dict[str, Any] | None:
        result = await self.db.execute(
            select(DisbursementMemoRow)
            .where(DisbursementMemoRow.application_id == application_id)
            .order_by(DisbursementMemoRow.revision.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return row.record if row else None

    async def history(self, application_id: ApplicationId) -> list[dict[str, Any]]:
        result = await self.db.execute(
            select(DisbursementMemoRow)
            .where(DisbursementMemoRow.application_id == application_id)
            .order_by(DisbursementMemoRow.revision.asc())
        )
        return [row.record for row in result.scalars().all()]
