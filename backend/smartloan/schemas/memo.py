"""Memo Schemas — request/response models for the disbursement memo endpoints.

Invariants:
    - Memo bodies are the camelCase record from core.memo.memo_to_record, passed through as-is
    - MemoStatusUpdate only accepts MemoStatus values (transition legality checked in core)
"""

from typing import Any

from pydantic import BaseModel

from smartloan.core.domain_types import MemoStatus


class MemoStatusUpdate(BaseModel):
    status: MemoStatus


class MemoHistoryResponse(BaseModel):
    application_id: str
    revisions: list[dict[str, Any]]
