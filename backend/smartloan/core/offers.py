"""Offer Generator — turns an eligible verdict into priced loan terms.

Invariants:
    - generate_offer() returns None iff the verdict is not eligible
    - generate_offer_options() prices one offer per policy.offer_terms() entry, each at
      that term's configured rate
    - Every dependent figure (payment, repayment, interest, fee, DSR) is recomputed at
      the amount being offered; figures computed for max_amount are never reused
    - adjust_offer() never mutates its input: it returns a fresh LoanOffer or None
    - None from adjust_offer() is a denial signal, not an error
    - valid_until = now + policy.offer_validity_hours; adjust_offer() carries it over

Design Decisions:
    - The offer carries its own income basis (gross_monthly_income, existing_monthly_debt)
      so adjust_offer() needs neither the records nor the verdict (ADR: stateless adjust)
    - Amounts stay full-precision Decimal; to_money() runs at the API/memo boundary
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Sequence

from smartloan.core.affordability import (
    ONE, Number, average_deductions, debt_service_ratio, floor_to_cent, floor_to_unit,
    maximum_loan_amount, monthly_payment, processing_fee, to_decimal,
    total_existing_debt,
)
from smartloan.core.policy import LendingPolicy
from smartloan.core.records import (
    IdentityRecord, IncomeRecord, average_gross_salary, check_records,
)
from smartloan.core.validation_engine import ApplicationVerdict

# Comparisons against the DSR ceiling tolerate Decimal noise from the annuity inversion
DSR_TOLERANCE = Decimal("1e-9")

_DSR_WARNING_PREFIX = "Your debt service ratio is"


@dataclass(frozen=True)
class LoanOffer:
    """Priced loan terms for one application. Recomputed, never edited."""
    max_amount: Decimal
    min_amount: Decimal
    recommended_amount: Decimal
    interest_rate: Decimal
    term_months: int
    monthly_payment: Decimal
    total_repayment: Decimal
    total_interest: Decimal
    processing_fee: Decimal
    debt_service_ratio: Decimal
    valid_until: datetime
    gross_monthly_income: Decimal
    existing_monthly_debt: Decimal
    conditions: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def is_valid_at(self, moment: datetime) -> bool:
        return moment < self.valid_until


def generate_offer(
    identity: IdentityRecord,
    incomes: Sequence[IncomeRecord],
    verdict: ApplicationVerdict,
    policy: LendingPolicy,
    now: datetime,
    term_months: int | None = None,
) -> LoanOffer | None:
    """Price the largest affordable loan, then offer the conservative share of it.

    term_months picks one of policy.offer_terms(); any other value (or None) falls back
    to policy.default_term_months. The rate is the one configured for the chosen term.
    """
    if not verdict.eligible:
        return None
    check_records(identity, incomes)

    gross = average_gross_salary(incomes)
    existing = total_existing_debt(average_deductions(incomes))
    term = choose_term(term_months, policy)
    rate = policy.interest_rate_for(term)

    max_amount = floor_to_cent(maximum_loan_amount(gross, [existing], policy, rate, term))
    recommended = floor_to_unit(max_amount * policy.conservative_offer_ratio)

    terms = _price(recommended, rate, term, gross, existing, policy)
    return LoanOffer(
        max_amount=max_amount,
        min_amount=policy.min_loan_amount,
        recommended_amount=recommended,
        interest_rate=rate,
        term_months=term,
        valid_until=now + timedelta(hours=policy.offer_validity_hours),
        gross_monthly_income=gross,
        existing_monthly_debt=existing,
        conditions=_conditions(verdict, policy),
        warnings=_warnings(verdict, terms["debt_service_ratio"], policy),
        **terms,
    )


def generate_offer_options(
    identity: IdentityRecord,
    incomes: Sequence[IncomeRecord],
    verdict: ApplicationVerdict,
    policy: LendingPolicy,
    now: datetime,
) -> tuple[LoanOffer, ...]:
    """One offer per available term, in configured order. Empty when not eligible."""
    if not verdict.eligible:
        return ()
    return tuple(
        generate_offer(identity, incomes, verdict, policy, now, term)
        for term in policy.offer_terms()
    )


def choose_term(term_months: int | None, policy: LendingPolicy) -> int:
    if term_months in policy.offer_terms():
        return term_months
    return policy.default_term_months


def adjust_offer(
    offer: LoanOffer, new_amount: Number, policy: LendingPolicy,
) -> LoanOffer | None:
    """Re-derive the offer at new_amount.

    Returns None when new_amount lies outside [min_amount, max_amount] or when the
    resulting DSR would exceed policy.max_debt_service_ratio.
    """
    amount = to_decimal(new_amount, "new_amount")
    if amount < offer.min_amount or amount > offer.max_amount:
        return None

    terms = _price(
        amount, offer.interest_rate, offer.term_months,
        offer.gross_monthly_income, offer.existing_monthly_debt, policy,
    )
    dsr = terms["debt_service_ratio"]
    if dsr > policy.max_debt_service_ratio + DSR_TOLERANCE:
        return None

    carried = tuple(w for w in offer.warnings if not w.startswith(_DSR_WARNING_PREFIX))
    dsr_warning = _dsr_warning(dsr, policy)
    return dataclasses.replace(
        offer,
        recommended_amount=amount,
        warnings=((dsr_warning,) if dsr_warning else ()) + carried,
        **terms,
    )


def _price(
    amount: Decimal,
    rate: Decimal,
    term: int,
    gross: Decimal,
    existing: Decimal,
    policy: LendingPolicy,
) -> dict[str, Decimal]:
    payment = monthly_payment(amount, rate, term)
    total_repayment = amount * (ONE + rate)
    return {
        "monthly_payment": payment,
        "total_repayment": total_repayment,
        "total_interest": total_repayment - amount,
        "processing_fee": processing_fee(amount, policy),
        "debt_service_ratio": debt_service_ratio(gross, [existing], payment),
    }


def _conditions(verdict: ApplicationVerdict, policy: LendingPolicy) -> tuple[str, ...]:
    conditions = [
        f"This offer is valid for {policy.offer_validity_hours} hours from generation time",
        "Final approval subject to document verification",
        "Loan disbursement will be made to your registered bank account",
        "Early repayment is allowed without penalties",
    ]
    if verdict.aggregate_confidence < policy.low_confidence_condition_threshold:
        conditions.append(
            "Additional document verification may be required due to extraction confidence"
        )
    if verdict.has_warnings:
        conditions.append("Offer subject to resolution of data quality warnings")
    return tuple(conditions)


def _dsr_warning(dsr: Decimal, policy: LendingPolicy) -> str | None:
    if dsr > policy.high_dsr_warning_ratio:
        return f"{_DSR_WARNING_PREFIX} {dsr * 100:.1f}%, which is relatively high"
    return None


def _warnings(
    verdict: ApplicationVerdict, dsr: Decimal, policy: LendingPolicy,
) -> tuple[str, ...]:
    warnings: list[str] = []
    dsr_warning = _dsr_warning(dsr, policy)
    if dsr_warning:
        warnings.append(dsr_warning)
    if verdict.aggregate_confidence < policy.low_confidence_warning_threshold:
        warnings.append("Document extraction confidence is below optimal levels")
    warnings.extend(verdict.warning_messages)
    return tuple(warnings)
