"""Application Schemas — Pydantic models for validation, offer, adjustment and acceptance.

Invariants:
    - Requests carry the extractor's output; to_records() converts to frozen core records
    - At most MAX_PAYSLIPS_PER_APPLICATION payslips; an EMPTY list is left for the core to
      reject (InvalidInputError), so there is one source of that error
    - Confidences in [0, 1]; amounts are Decimal on input
    - Money serializes as a number rounded half-up to cents; ratios as 6-digit floats
    - The offer's income basis serializes as an exact decimal string: /adjust re-derives
      the DSR from it, so rounding it would move the affordability ceiling
    - LoanOfferSchema round-trips: an offer returned by /offer can be posted back to /adjust

Design Decisions:
    - Annotated serializers over custom json_encoders: pydantic v2 native, JSON mode only,
      so model_dump() in Python keeps full Decimal precision
    - pay_period is a plain str: an unreadable period is a rule failure, not a 400
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, PlainSerializer, field_validator

from smartloan.core.affordability import to_money
from smartloan.core.domain_types import MAX_PAYSLIPS_PER_APPLICATION, RuleId
from smartloan.core.offers import LoanOffer
from smartloan.core.records import IdentityRecord, IncomeRecord
from smartloan.core.rules import RuleOutcome
from smartloan.core.validation_engine import ApplicationVerdict

Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(to_money(v)), return_type=float, when_used="json"),
]
Exact = Annotated[
    Decimal,
    PlainSerializer(str, return_type=str, when_used="json"),
]
Ratio = Annotated[
    Decimal,
    PlainSerializer(lambda v: round(float(v), 6), return_type=float, when_used="json"),
]


# ─── Requests ────────────────────────────────────────────────────

class IdentityIn(BaseModel):
    """Fields read off the applicant's ID card."""
    full_name: str = Field(max_length=200)
    id_number: str = Field(max_length=50)
    date_of_birth: str = Field("", max_length=20)
    expiry_date: str = Field("", max_length=20)
    extraction_confidence: float = Field(1.0, ge=0.0, le=1.0)
    is_valid: bool = True

    @field_validator("full_name", "id_number", "date_of_birth", "expiry_date")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    def to_record(self) -> IdentityRecord:
        return IdentityRecord(**self.model_dump())


class IncomeIn(BaseModel):
    """Fields read off one payslip."""
    employee_name: str = Field(max_length=200)
    employer_name: str = Field("", max_length=200)
    gross_salary: Decimal = Field(allow_inf_nan=False)
    net_salary: Decimal = Field(allow_inf_nan=False)
    pay_period: str = Field(max_length=20)
    deductions: dict[str, Decimal] = Field(default_factory=dict)
    allowances: dict[str, Decimal] = Field(default_factory=dict)
    extraction_confidence: float = Field(1.0, ge=0.0, le=1.0)
    is_valid: bool = True

    def to_record(self) -> IncomeRecord:
        return IncomeRecord(**self.model_dump())


class ApplicationRequest(BaseModel):
    """Extracted application data.

    as_of overrides the evaluation date (default: today). preferred_term_months picks one
    of the policy's loan terms; any other value prices at the default term.
    """
    identity: IdentityIn
    incomes: list[IncomeIn] = Field(max_length=MAX_PAYSLIPS_PER_APPLICATION)
    as_of: date | None = None
    preferred_term_months: int | None = Field(None, gt=0)

    def to_records(self) -> tuple[IdentityRecord, list[IncomeRecord]]:
        return self.identity.to_record(), [i.to_record() for i in self.incomes]


class AcceptRequest(ApplicationRequest):
    """Acceptance of the offer: both confirmations must be true."""
    accepted_amount: Decimal | None = Field(None, ge=0, allow_inf_nan=False)
    biometric_confirmed: bool = False
    terms_accepted: bool = False


# ─── Verdict ─────────────────────────────────────────────────────

class RuleOutcomeOut(BaseModel):
    rule_id: RuleId
    passed: bool
    priority: int
    error_message: str | None = None
    warning_message: str | None = None
    confidence: float
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_outcome(cls, outcome: RuleOutcome) -> "RuleOutcomeOut":
        return cls(
            rule_id=outcome.rule_id,
            passed=outcome.passed,
            priority=outcome.priority,
            error_message=outcome.error_message,
            warning_message=outcome.warning_message,
            confidence=round(outcome.confidence, 4),
            details=dict(outcome.details),
        )


class VerdictResponse(BaseModel):
    eligible: bool
    evaluated_on: date
    aggregate_confidence: float
    extraction_confidence: float
    outcomes: list[RuleOutcomeOut]
    errors: list[str]
    warnings: list[str]

    @classmethod
    def from_verdict(cls, verdict: ApplicationVerdict) -> "VerdictResponse":
        return cls(
            eligible=verdict.eligible,
            evaluated_on=verdict.evaluated_on,
            aggregate_confidence=round(verdict.aggregate_confidence, 4),
            extraction_confidence=round(verdict.extraction_confidence, 4),
            outcomes=[RuleOutcomeOut.from_outcome(o) for o in verdict.outcomes],
            errors=verdict.error_messages,
            warnings=verdict.warning_messages,
        )


# ─── Offer ───────────────────────────────────────────────────────

class LoanOfferSchema(BaseModel):
    """Wire form of core.offers.LoanOffer (response of /offer, input of /adjust)."""
    max_amount: Money = Field(ge=0, allow_inf_nan=False)
    min_amount: Money = Field(Decimal("0"), ge=0, allow_inf_nan=False)
    recommended_amount: Money = Field(ge=0, allow_inf_nan=False)
    interest_rate: Ratio = Field(ge=0, allow_inf_nan=False)
    term_months: int = Field(gt=0)
    monthly_payment: Money = Field(allow_inf_nan=False)
    total_repayment: Money = Field(allow_inf_nan=False)
    total_interest: Money = Field(allow_inf_nan=False)
    processing_fee: Money = Field(allow_inf_nan=False)
    debt_service_ratio: Ratio = Field(allow_inf_nan=False)
    valid_until: datetime
    gross_monthly_income: Exact = Field(allow_inf_nan=False)
    existing_monthly_debt: Exact = Field(Decimal("0"), ge=0, allow_inf_nan=False)
    conditions: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_offer(cls, offer: LoanOffer) -> "LoanOfferSchema":
        return cls(
            max_amount=offer.max_amount,
            min_amount=offer.min_amount,
            recommended_amount=offer.recommended_amount,
            interest_rate=offer.interest_rate,
            term_months=offer.term_months,
            monthly_payment=offer.monthly_payment,
            total_repayment=offer.total_repayment,
            total_interest=offer.total_interest,
            processing_fee=offer.processing_fee,
            debt_service_ratio=offer.debt_service_ratio,
            valid_until=offer.valid_until,
            gross_monthly_income=offer.gross_monthly_income,
            existing_monthly_debt=offer.existing_monthly_debt,
            conditions=list(offer.conditions),
            warnings=list(offer.warnings),
        )

    def to_offer(self) -> LoanOffer:
        data = self.model_dump()
        data["conditions"] = tuple(data["conditions"])
        data["warnings"] = tuple(data["warnings"])
        return LoanOffer(**data)


class OfferResponse(BaseModel):
    verdict: VerdictResponse
    offer: LoanOfferSchema | None = None


class OfferOptionsResponse(BaseModel):
    """One offer per available loan term; empty when the application is not eligible."""
    verdict: VerdictResponse
    offers: list[LoanOfferSchema] = Field(default_factory=list)


class AdjustRequest(BaseModel):
    offer: LoanOfferSchema
    new_amount: Decimal = Field(allow_inf_nan=False)


class AdjustResponse(BaseModel):
    """status=denied (offer null) is a normal outcome, not an error."""
    status: Literal["adjusted", "denied"]
    offer: LoanOfferSchema | None = None
