"""Disbursement Memo — write-once record of an accepted loan and its lifecycle.

Invariants:
    - build_memo() is PURE and total except for a missing offer (OfferUnavailableError)
    - A memo is never edited: supersede_memo() returns a NEW memo with revision + 1
    - Status moves only pending -> disbursed | cancelled (MEMO_STATUS_TRANSITIONS)
    - memo_to_record() emits stable camelCase keys; amounts rounded half-up to cents
    - memo_from_record(memo_to_record(m)) restores every field memo_to_record() writes

Design Decisions:
    - Applicant salary figures are payslip averages, employer is the latest payslip's:
      the memo describes the same income basis the offer was priced on
    - Timestamps are ISO-8601 strings in the record (JSON has no datetime)
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from smartloan.core.affordability import to_money
from smartloan.core.domain_types import (
    MEMO_STATUS_TRANSITIONS, ApplicationId, MemoStatus, RecommendedAction,
)
from smartloan.core.errors import InvalidStatusTransitionError, OfferUnavailableError
from smartloan.core.offers import LoanOffer
from smartloan.core.policy import LendingPolicy
from smartloan.core.records import (
    IdentityRecord, IncomeRecord, average_gross_salary, average_net_salary,
    most_recent_income,
)
from smartloan.core.risk import RiskAssessment, assess_risk
from smartloan.core.validation_engine import ApplicationVerdict

APPROVED_BY = "AI_SYSTEM"
DEFAULT_NEXT_STEPS = (
    "Verify bank account details",
    "Process disbursement",
    "Send confirmation SMS",
    "Schedule first payment reminder",
)


@dataclass(frozen=True)
class ApplicantInfo:
    full_name: str
    id_number: str
    date_of_birth: str
    employer_name: str
    gross_salary: Decimal
    net_salary: Decimal


@dataclass(frozen=True)
class LoanDetails:
    approved_amount: Decimal
    interest_rate: Decimal
    term_months: int
    monthly_payment: Decimal
    total_repayment: Decimal
    debt_service_ratio: Decimal
    processing_fee: Decimal
    offer_valid_until: datetime


@dataclass(frozen=True)
class VerificationInfo:
    id_verified: bool
    salary_verified: bool
    extraction_confidence_average: float
    business_rules_pass: bool


@dataclass(frozen=True)
class ApprovalInfo:
    approval_timestamp: datetime
    biometric_confirmed: bool
    terms_accepted: bool
    approved_by: str = APPROVED_BY
    approval_notes: str = ""
    next_steps: tuple[str, ...] = DEFAULT_NEXT_STEPS


@dataclass(frozen=True)
class DisbursementMemo:
    application_id: ApplicationId
    created_at: datetime
    applicant: ApplicantInfo
    loan: LoanDetails
    verification: VerificationInfo
    risk: RiskAssessment
    approval: ApprovalInfo
    status: MemoStatus = MemoStatus.APPROVED_PENDING_DISBURSEMENT
    revision: int = 1


def build_memo(
    application_id: ApplicationId,
    identity: IdentityRecord,
    incomes: Sequence[IncomeRecord],
    verdict: ApplicationVerdict,
    offer: LoanOffer | None,
    biometric_confirmed: bool,
    terms_accepted: bool,
    now: datetime,
    policy: LendingPolicy,
) -> DisbursementMemo:
    """Assemble the memo for an accepted offer.

    Raises:
        OfferUnavailableError: offer is None (ineligible applications cannot be disbursed).
    """
    if offer is None:
        raise OfferUnavailableError(application_id)

    latest = most_recent_income(incomes)
    return DisbursementMemo(
        application_id=application_id,
        created_at=now,
        applicant=ApplicantInfo(
            full_name=identity.full_name,
            id_number=identity.id_number,
            date_of_birth=identity.date_of_birth,
            employer_name=latest.employer_name or "Unknown",
            gross_salary=average_gross_salary(incomes),
            net_salary=average_net_salary(incomes),
        ),
        loan=LoanDetails(
            approved_amount=offer.recommended_amount,
            interest_rate=offer.interest_rate,
            term_months=offer.term_months,
            monthly_payment=offer.monthly_payment,
            total_repayment=offer.total_repayment,
            debt_service_ratio=offer.debt_service_ratio,
            processing_fee=offer.processing_fee,
            offer_valid_until=offer.valid_until,
        ),
        verification=VerificationInfo(
            id_verified=identity.is_valid,
            salary_verified=all(i.is_valid for i in incomes),
            extraction_confidence_average=verdict.extraction_confidence,
            business_rules_pass=verdict.eligible,
        ),
        risk=assess_risk(verdict, incomes, policy),
        approval=ApprovalInfo(
            approval_timestamp=now,
            biometric_confirmed=biometric_confirmed,
            terms_accepted=terms_accepted,
            approval_notes=_approval_notes(verdict, offer),
        ),
    )


def _approval_notes(verdict: ApplicationVerdict, offer: LoanOffer) -> str:
    notes = [
        "Application processed via automated SmartLoan underwriting",
        f"DSR: {offer.debt_service_ratio * 100:.1f}% (within policy limits)",
    ]
    if verdict.warning_messages:
        notes.append(f"Warnings: {', '.join(verdict.warning_messages)}")
    return ". ".join(notes)


def supersede_memo(
    memo: DisbursementMemo, status: MemoStatus, now: datetime,
) -> DisbursementMemo:
    """Return the memo that replaces `memo` with a new status. `memo` is untouched."""
    status = MemoStatus(status)
    if status not in MEMO_STATUS_TRANSITIONS[memo.status]:
        raise InvalidStatusTransitionError(
            memo.status.value, status.value,
        )
    return dataclasses.replace(
        memo, status=status, revision=memo.revision + 1, created_at=now,
    )


# ─── Record (camelCase JSON) ─────────────────────────────────────

def _money(value: Decimal) -> float:
    return float(to_money(value))


def memo_to_record(memo: DisbursementMemo) -> dict[str, Any]:
    """Stable JSON structure handed to the memo store and API clients."""
    return {
        "applicationId": memo.application_id,
        "revision": memo.revision,
        "timestamp": memo.created_at.isoformat(),
        "applicantInfo": {
            "fullName": memo.applicant.full_name,
            "idNumber": memo.applicant.id_number,
            "dateOfBirth": memo.applicant.date_of_birth,
            "employerName": memo.applicant.employer_name,
            "grossSalary": _money(memo.applicant.gross_salary),
            "netSalary": _money(memo.applicant.net_salary),
        },
        "loanDetails": {
            "approvedAmount": _money(memo.loan.approved_amount),
            "interestRate": float(memo.loan.interest_rate),
            "termMonths": memo.loan.term_months,
            "monthlyPayment": _money(memo.loan.monthly_payment),
            "totalRepayment": _money(memo.loan.total_repayment),
            "dsr": round(float(memo.loan.debt_service_ratio), 4),
            "processingFee": _money(memo.loan.processing_fee),
            "offerValidUntil": memo.loan.offer_valid_until.isoformat(),
        },
        "verification": {
            "idVerified": memo.verification.id_verified,
            "salaryVerified": memo.verification.salary_verified,
            "extractionConfidenceAverage": round(
                memo.verification.extraction_confidence_average, 4,
            ),
            "businessRulesPass": memo.verification.business_rules_pass,
        },
        "riskAssessment": {
            "overallRiskScore": memo.risk.risk_score,
            "confidenceLevel": round(memo.risk.confidence_level, 4),
            "recommendedAction": memo.risk.recommended_action.value,
            "riskFactors": list(memo.risk.risk_factors),
            "mitigatingFactors": list(memo.risk.mitigating_factors),
        },
        "approvalInfo": {
            "approvalTimestamp": memo.approval.approval_timestamp.isoformat(),
            "biometricConfirmed": memo.approval.biometric_confirmed,
            "termsAccepted": memo.approval.terms_accepted,
            "approvedBy": memo.approval.approved_by,
            "approvalNotes": memo.approval.approval_notes,
            "nextSteps": list(memo.approval.next_steps),
        },
        "status": memo.status.value,
    }


def memo_from_record(record: dict[str, Any]) -> DisbursementMemo:
    """Rebuild a memo from its stored record (amounts as stored, i.e. to the cent)."""
    applicant = record["applicantInfo"]
    loan = record["loanDetails"]
    verification = record["verification"]
    risk = record["riskAssessment"]
    approval = record["approvalInfo"]
    return DisbursementMemo(
        application_id=ApplicationId(record["applicationId"]),
        created_at=datetime.fromisoformat(record["timestamp"]),
        applicant=ApplicantInfo(
            full_name=applicant["fullName"],
            id_number=applicant["idNumber"],
            date_of_birth=applicant["dateOfBirth"],
            employer_name=applicant["employerName"],
            gross_salary=Decimal(str(applicant["grossSalary"])),
            net_salary=Decimal(str(applicant["netSalary"])),
        ),
        loan=LoanDetails(
            approved_amount=Decimal(str(loan["approvedAmount"])),
            interest_rate=Decimal(str(loan["interestRate"])),
            term_months=loan["termMonths"],
            monthly_payment=Decimal(str(loan["monthlyPayment"])),
            total_repayment=Decimal(str(loan["totalRepayment"])),
            debt_service_ratio=Decimal(str(loan["dsr"])),
            processing_fee=Decimal(str(loan["processingFee"])),
            offer_valid_until=datetime.fromisoformat(loan["offerValidUntil"]),
        ),
        verification=VerificationInfo(
            id_verified=verification["idVerified"],
            salary_verified=verification["salaryVerified"],
            extraction_confidence_average=verification["extractionConfidenceAverage"],
            business_rules_pass=verification["businessRulesPass"],
        ),
        risk=RiskAssessment(
            risk_score=risk["overallRiskScore"],
            confidence_level=risk["confidenceLevel"],
            risk_factors=tuple(risk["riskFactors"]),
            mitigating_factors=tuple(risk["mitigatingFactors"]),
            recommended_action=RecommendedAction(risk["recommendedAction"]),
        ),
        approval=ApprovalInfo(
            approval_timestamp=datetime.fromisoformat(approval["approvalTimestamp"]),
            biometric_confirmed=approval["biometricConfirmed"],
            terms_accepted=approval["termsAccepted"],
            approved_by=approval.get("approvedBy", APPROVED_BY),
            approval_notes=approval.get("approvalNotes", ""),
            next_steps=tuple(approval.get("nextSteps", DEFAULT_NEXT_STEPS)),
        ),
        status=MemoStatus(record["status"]),
        revision=record.get("revision", 1),
    )


# ─── Human-readable ──────────────────────────────────────────────

def format_memo_text(memo: DisbursementMemo, currency: str = "KSh") -> str:
    """Plain-text memo for printing or attaching to a disbursement ticket."""
    def yes_or_pending(flag: bool) -> str:
        return "YES" if flag else "PENDING"

    lines = [
        "=== LOAN DISBURSEMENT MEMO ===",
        f"Application ID: {memo.application_id}",
        f"Revision: {memo.revision}",
        f"Generated: {memo.created_at:%Y-%m-%d %H:%M:%S}",
        f"Status: {memo.status.value}",
        "",
        "APPLICANT INFORMATION:",
        f"Name: {memo.applicant.full_name}",
        f"ID Number: {memo.applicant.id_number}",
        f"Employer: {memo.applicant.employer_name}",
        f"Gross Salary: {currency} {to_money(memo.applicant.gross_salary):,.2f}",
        "",
        "LOAN DETAILS:",
        f"Approved Amount: {currency} {to_money(memo.loan.approved_amount):,.2f}",
        f"Interest Rate: {memo.loan.interest_rate * 100:.1f}%",
        f"Term: {memo.loan.term_months} months",
        f"Monthly Payment: {currency} {to_money(memo.loan.monthly_payment):,.2f}",
        f"Processing Fee: {currency} {to_money(memo.loan.processing_fee):,.2f}",
        f"DSR: {memo.loan.debt_service_ratio * 100:.1f}%",
        "",
        "RISK ASSESSMENT:",
        f"Risk Score: {memo.risk.risk_score:.2f}",
        f"Recommended Action: {memo.risk.recommended_action.value}",
    ]
    if memo.risk.risk_factors:
        lines.append(f"Risk Factors: {', '.join(memo.risk.risk_factors)}")
    lines += [
        "",
        "APPROVAL STATUS:",
        f"Biometric Confirmed: {yes_or_pending(memo.approval.biometric_confirmed)}",
        f"Terms Accepted: {yes_or_pending(memo.approval.terms_accepted)}",
    ]
    return "\n".join(lines)
