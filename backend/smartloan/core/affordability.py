"""Affordability Calculator — DSR, maximum principal and annuity payments in Decimal.

Invariants:
    - All functions are PURE: no IO, no clock, no logging
    - Arithmetic is Decimal end to end; rounding happens only in to_money() at presentation
    - debt_service_ratio never divides by zero: gross <= 0 raises InvalidInputError
    - maximum_loan_amount is clamped to [0, policy.max_loan_amount]
    - monthly_payment(maximum_loan_amount(...)) reproduces the policy DSR (inverse functions)
    - Non-finite inputs raise InvalidInputError

Design Decisions:
    - Decimal over float: currency values must not drift across the payment/principal inversion
    - Local decimal context with 34 digits: the (1+r)^n factor is the only precision hot spot
"""

import decimal
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Iterable, Mapping, Sequence

from smartloan.core.errors import InvalidInputError
from smartloan.core.policy import LendingPolicy
from smartloan.core.records import IncomeRecord

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
UNIT = Decimal("1")
MONTHS_PER_YEAR = Decimal("12")

_CONTEXT = decimal.Context(prec=34, rounding=ROUND_HALF_UP)

Number = Decimal | float | int | str


def to_decimal(value: Number, field: str) -> Decimal:
    """Coerce a numeric input to a finite Decimal. Raises InvalidInputError."""
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (decimal.InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"Not a number: {value!r}", field)
    if not result.is_finite():
        raise InvalidInputError(f"Must be a finite number, got {value!r}", field)
    return result


def to_money(value: Decimal) -> Decimal:
    """Presentation rounding: half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def floor_to_unit(value: Decimal) -> Decimal:
    """Round down to the nearest whole currency unit."""
    return value.quantize(UNIT, rounding=ROUND_DOWN)


def floor_to_cent(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def _annuity_factor(annual_rate: Decimal, term_months: int) -> tuple[Decimal, Decimal]:
    """Return (monthly rate r, growth factor (1+r)^n)."""
    with decimal.localcontext(_CONTEXT):
        r = annual_rate / MONTHS_PER_YEAR
        return r, (ONE + r) ** term_months


def _check_term(term_months: int) -> None:
    if not isinstance(term_months, int) or term_months <= 0:
        raise InvalidInputError(
            f"Term must be a positive whole number of months, got {term_months!r}",
            "term_months",
        )


def monthly_payment(principal: Number, annual_rate: Number, term_months: int) -> Decimal:
    """Fixed amortizing payment: P * r * (1+r)^n / ((1+r)^n - 1); P / n when r = 0."""
    p = to_decimal(principal, "principal")
    rate = to_decimal(annual_rate, "annual_rate")
    _check_term(term_months)
    if p < 0:
        raise InvalidInputError(f"Principal must not be negative, got {p}", "principal")
    if rate < 0:
        raise InvalidInputError(f"Rate must not be negative, got {rate}", "annual_rate")
    if p == 0:
        return ZERO
    with decimal.localcontext(_CONTEXT):
        if rate == 0:
            return p / term_months
        r, factor = _annuity_factor(rate, term_months)
        return p * r * factor / (factor - ONE)


def principal_for_payment(payment: Number, annual_rate: Number, term_months: int) -> Decimal:
    """Inverse of monthly_payment: the principal a fixed payment can service."""
    pmt = to_decimal(payment, "payment")
    rate = to_decimal(annual_rate, "annual_rate")
    _check_term(term_months)
    if pmt <= 0:
        return ZERO
    with decimal.localcontext(_CONTEXT):
        if rate == 0:
            return pmt * term_months
        r, factor = _annuity_factor(rate, term_months)
        return pmt * (factor - ONE) / (r * factor)


def debt_service_ratio(
    gross_monthly_salary: Number,
    existing_deductions: Mapping[str, Number] | Iterable[Number],
    proposed_payment: Number,
) -> Decimal:
    """(existing monthly deductions + proposed payment) / gross monthly salary."""
    gross = to_decimal(gross_monthly_salary, "gross_monthly_salary")
    if gross <= 0:
        raise InvalidInputError(
            f"Gross monthly salary must be positive to compute DSR, got {gross}",
            "gross_monthly_salary",
        )
    existing = total_existing_debt(existing_deductions)
    payment = to_decimal(proposed_payment, "proposed_payment")
    with decimal.localcontext(_CONTEXT):
        return (existing + payment) / gross


def maximum_loan_amount(
    gross_monthly_salary: Number,
    existing_deductions: Mapping[str, Number] | Iterable[Number],
    policy: LendingPolicy,
    annual_rate: Number | None = None,
    term_months: int | None = None,
) -> Decimal:
    """Largest principal whose payment brings DSR exactly to policy.max_debt_service_ratio.

    Clamped to [0, policy.max_loan_amount]. Rate and term default to the policy's.
    """
    gross = to_decimal(gross_monthly_salary, "gross_monthly_salary")
    if gross <= 0:
        return ZERO
    rate = policy.default_interest_rate if annual_rate is None else annual_rate
    term = policy.default_term_months if term_months is None else term_months
    existing = total_existing_debt(existing_deductions)
    with decimal.localcontext(_CONTEXT):
        headroom = gross * policy.max_debt_service_ratio - existing
    if headroom <= 0:
        return ZERO
    principal = principal_for_payment(headroom, rate, term)
    return min(max(principal, ZERO), policy.max_loan_amount)


def total_existing_debt(
    deductions: Mapping[str, Number] | Iterable[Number],
) -> Decimal:
    values = deductions.values() if isinstance(deductions, Mapping) else deductions
    total = ZERO
    for i, value in enumerate(values):
        total += to_decimal(value, f"existing_deductions[{i}]")
    return total


def average_deductions(incomes: Sequence[IncomeRecord]) -> dict[str, Decimal]:
    """Per-deduction-name mean across the payslips that list it."""
    collected: dict[str, list[Decimal]] = {}
    for income in incomes:
        for name, amount in income.deductions.items():
            collected.setdefault(name, []).append(amount)
    with decimal.localcontext(_CONTEXT):
        return {
            name: sum(values, ZERO) / len(values)
            for name, values in collected.items()
        }


def total_interest(principal: Number, annual_rate: Number, term_months: int) -> Decimal:
    """Interest paid over the full amortization schedule."""
    p = to_decimal(principal, "principal")
    with decimal.localcontext(_CONTEXT):
        return monthly_payment(p, annual_rate, term_months) * term_months - p


def processing_fee(amount: Number, policy: LendingPolicy) -> Decimal:
    """Fee = rate * amount, clamped to [processing_fee_min, processing_fee_max]."""
    value = to_decimal(amount, "amount")
    if value <= 0:
        return ZERO
    fee = value * policy.processing_fee_rate
    return min(max(fee, policy.processing_fee_min), policy.processing_fee_max)
