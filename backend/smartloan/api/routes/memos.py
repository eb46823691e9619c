"""Memo Routes — read and supersede disbursement memos.

Invariants:
    - GET returns the latest revision; /history returns every revision oldest first
    - Unknown application id -> 404 RESOURCE_NOT_FOUND
    - Status change appends a new revision (illegal transition -> 409)
"""

from fastapi import APIRouter, Depends

from smartloan.api.dependencies import get_memo_service
from smartloan.core.domain_types import ApplicationId
from smartloan.schemas.memo import MemoHistoryResponse, MemoStatusUpdate
from smartloan.services.underwriting import UnderwritingService

router = APIRouter(prefix="/api/v1/memos", tags=["memos"])


@router.get("/{application_id}")
async def get_memo(
    application_id: str,
    service: UnderwritingService = Depends(get_memo_service),
):
    return await service.get_memo(ApplicationId(application_id))


@router.get("/{application_id}/history", response_model=MemoHistoryResponse)
async def get_memo_history(
    application_id: str,
    service: UnderwritingService = Depends(get_memo_service),
):
    revisions = await service.memo_history(ApplicationId(application_id))
    return MemoHistoryResponse(application_id=application_id, revisions=revisions)


@router.post("/{application_id}/status")
async def change_memo_status(
    application_id: str,
    body: MemoStatusUpdate,
    service: UnderwritingService = Depends(get_memo_service),
):
    """Supersede the latest memo with a new status."""
    return await service.change_status(ApplicationId(application_id), body.status)
