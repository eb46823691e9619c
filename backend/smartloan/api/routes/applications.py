"""Application Routes — validate, offer, list term options and accept a loan application.

Invariants:
    - Failed business rules return 200 with eligible=false (they are data, not errors)
    - Structural input errors surface as 400 INVALID_INPUT, policy errors as 500
    - accept returns 201 with the persisted memo record, 400 without both confirmations
    - offer-options returns one offer per available loan term, an empty list when ineligible

Design Decisions:
    - Thin handlers: schema -> core records -> service -> schema
"""

import logging

from fastapi import APIRouter, Depends, status

from smartloan.api.dependencies import get_memo_service, get_underwriting_service
from smartloan.schemas.application import (
    AcceptRequest, ApplicationRequest, LoanOfferSchema, OfferOptionsResponse, OfferResponse,
    VerdictResponse,
)
from smartloan.services.underwriting import UnderwritingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/applications", tags=["applications"])


@router.post("/validate", response_model=VerdictResponse)
async def validate_application(
    body: ApplicationRequest,
    service: UnderwritingService = Depends(get_underwriting_service),
):
    """Run every business rule and return the verdict."""
    identity, incomes = body.to_records()
    verdict = service.validate(identity, incomes, body.as_of)
    return VerdictResponse.from_verdict(verdict)


@router.post("/offer", response_model=OfferResponse)
async def offer_application(
    body: ApplicationRequest,
    service: UnderwritingService = Depends(get_underwriting_service),
):
    """Validate and, when eligible, price a loan offer."""
    identity, incomes = body.to_records()
    verdict, offer = service.offer(
        identity, incomes, body.as_of, body.preferred_term_months,
    )
    return OfferResponse(
        verdict=VerdictResponse.from_verdict(verdict),
        offer=LoanOfferSchema.from_offer(offer) if offer else None,
    )


@router.post("/offer-options", response_model=OfferOptionsResponse)
async def offer_options(
    body: ApplicationRequest,
    service: UnderwritingService = Depends(get_underwriting_service),
):
    """Validate and price one offer per available loan term."""
    identity, incomes = body.to_records()
    verdict, offers = service.offer_options(identity, incomes, body.as_of)
    return OfferOptionsResponse(
        verdict=VerdictResponse.from_verdict(verdict),
        offers=[LoanOfferSchema.from_offer(o) for o in offers],
    )


@router.post("/accept", status_code=status.HTTP_201_CREATED)
async def accept_application(
    body: AcceptRequest,
    service: UnderwritingService = Depends(get_memo_service),
):
    """Accept the offer after biometric and terms confirmation; persist the memo."""
    identity, incomes = body.to_records()
    return await service.accept(
        identity, incomes,
        biometric_confirmed=body.biometric_confirmed,
        terms_accepted=body.terms_accepted,
        accepted_amount=body.accepted_amount,
        as_of=body.as_of,
        term_months=body.preferred_term_months,
    )
