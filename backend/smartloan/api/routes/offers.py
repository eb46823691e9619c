"""Offer Routes — amount adjustment of a previously generated offer.

Invariants:
    - A denied adjustment is 200 {"status": "denied", "offer": null}, never an error status
    - The posted offer is not trusted for eligibility: adjust only re-prices within its bounds
"""

from fastapi import APIRouter, Depends

from smartloan.api.dependencies import get_underwriting_service
from smartloan.schemas.application import AdjustRequest, AdjustResponse, LoanOfferSchema
from smartloan.services.underwriting import UnderwritingService

router = APIRouter(prefix="/api/v1/offers", tags=["offers"])


@router.post("/adjust", response_model=AdjustResponse)
async def adjust_offer(
    body: AdjustRequest,
    service: UnderwritingService = Depends(get_underwriting_service),
):
    adjusted = service.adjust(body.offer.to_offer(), body.new_amount)
    if adjusted is None:
        return AdjustResponse(status="denied", offer=None)
    return AdjustResponse(status="adjusted", offer=LoanOfferSchema.from_offer(adjusted))
