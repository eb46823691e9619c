"""Business Rules — independent pure predicates over extracted applicant data.

Invariants:
    - All functions are PURE: no IO, no clock (as_of is injected), no shared state
    - Every check has the shape (ApplicantData, LendingPolicy) -> CheckResult
    - No rule reads another rule's outcome; evaluation order never changes eligibility
    - A failed rule is a normal RuleOutcome, never an exception
    - Only DOCUMENT_CONSISTENCY emits warnings; it never fails

Design Decisions:
    - Tagged-variant dispatch: RuleId (closed enum) -> check function, collected in DEFAULT_RULES.
      Adding a rule = new RuleId member + check + Rule entry; no subclass hierarchy
    - Priority lives on the Rule, not the check: it orders display/logging only.
      LendingPolicy.rule_priorities may override it per rule
    - Messages name the offending values (periods, names, ages) so the applicant
      knows exactly what to retake or resubmit
"""

from dataclasses import dataclass, field
from datetime import date
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from smartloan.core.document_dates import (
    completed_years, months_before, parse_document_date, parse_pay_period,
)
from smartloan.core.domain_types import RuleId
from smartloan.core.name_matching import name_similarity, normalize_name
from smartloan.core.policy import LendingPolicy
from smartloan.core.records import (
    IdentityRecord, IncomeRecord, average_gross_salary, extraction_confidence,
)


@dataclass(frozen=True)
class ApplicantData:
    """Everything a rule may look at. Rules read only the subset they need."""
    identity: IdentityRecord
    incomes: tuple[IncomeRecord, ...]
    as_of: date


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating one rule. Produced once, never mutated."""
    rule_id: RuleId
    passed: bool
    priority: int
    error_message: str | None = None
    warning_message: str | None = None
    confidence: float = 1.0
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def has_warning(self) -> bool:
        return self.passed and self.warning_message is not None


@dataclass(frozen=True)
class CheckResult:
    """What a check function returns; the engine stamps rule_id and priority on it."""
    passed: bool
    error_message: str | None = None
    warning_message: str | None = None
    confidence: float = 1.0
    details: Mapping[str, Any] = field(default_factory=dict)


RuleCheck = Callable[[ApplicantData, LendingPolicy], CheckResult]


@dataclass(frozen=True)
class Rule:
    rule_id: RuleId
    priority: int
    check: RuleCheck


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


# ─── Payslip Recency ─────────────────────────────────────────────

def check_payslip_recency(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """Every pay period must be at most payslip_recency_months before as_of."""
    limit = policy.payslip_recency_months
    offending: list[str] = []
    for income in data.incomes:
        period = parse_pay_period(income.pay_period)
        if period is None:
            offending.append(income.pay_period or "<missing>")
            continue
        age = months_before(period, data.as_of)
        if age > limit or age < 0:
            offending.append(income.pay_period)

    if offending:
        return CheckResult(
            passed=False,
            error_message=(
                f"Payslips must be from the last {limit} months. "
                f"Found payslips from: {', '.join(offending)}"
            ),
            details={"offending_periods": tuple(offending), "max_age_months": limit},
        )
    return CheckResult(passed=True, details={"validated_payslips": len(data.incomes)})


# ─── Payslip Count ───────────────────────────────────────────────

def check_payslip_count(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """At least min_payslips payslips must carry the extractor's validity flag."""
    valid = sum(1 for i in data.incomes if i.is_valid)
    required = policy.min_payslips
    if valid < required:
        return CheckResult(
            passed=False,
            error_message=(
                f"Insufficient payslips for income assessment. "
                f"Provided: {valid} valid payslips, Required: {required}"
            ),
            details={"payslip_count": valid, "required_count": required},
        )
    return CheckResult(
        passed=True, details={"payslip_count": valid, "required_count": required},
    )


# ─── Name Consistency ────────────────────────────────────────────

def check_name_consistency(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """Lowest ID-vs-payslip name similarity must reach name_fuzzy_match_threshold."""
    id_name = normalize_name(data.identity.full_name)
    if not id_name:
        return CheckResult(
            passed=False, confidence=0.0,
            error_message="ID name is missing or empty",
        )

    scores = [name_similarity(id_name, i.employee_name) for i in data.incomes]
    threshold = policy.name_fuzzy_match_threshold
    lowest = min(scores)
    average = sum(scores) / len(scores)
    details = {
        "similarity_scores": tuple(round(s, 4) for s in scores),
        "min_similarity": round(lowest, 4),
        "threshold": threshold,
    }

    if lowest < threshold:
        mismatched = [
            f"'{i.employee_name}'"
            for i, s in zip(data.incomes, scores) if s < threshold
        ]
        return CheckResult(
            passed=False, confidence=average, details=details,
            error_message=(
                f"Name on payslip does not match ID. "
                f"ID: '{data.identity.full_name}', Payslips: {', '.join(mismatched)}"
            ),
        )
    return CheckResult(passed=True, confidence=average, details=details)


# ─── Age / Retirement Window ─────────────────────────────────────

def check_retirement_age(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """min_age <= age and age + term/12 <= max_age."""
    born = parse_document_date(data.identity.date_of_birth)
    if born is None:
        raw = data.identity.date_of_birth
        return CheckResult(
            passed=False,
            error_message=(
                f"Invalid date of birth format: {raw}" if raw
                else "Date of birth is missing from ID"
            ),
        )

    age = completed_years(born, data.as_of)
    age_at_loan_end = age + Fraction(policy.default_term_months, 12)
    details = {
        "current_age": age,
        "age_at_loan_end": float(age_at_loan_end),
        "min_age": policy.min_age,
        "max_age": policy.max_age,
    }

    if age < policy.min_age:
        return CheckResult(
            passed=False, details=details,
            error_message=(
                f"Applicant age ({age}) is below minimum age ({policy.min_age})"
            ),
        )
    if age_at_loan_end > policy.max_age:
        return CheckResult(
            passed=False, details=details,
            error_message=(
                f"Loan term would extend past the maximum lending age "
                f"({policy.max_age}). Current age: {age}, "
                f"Age at loan completion: {float(age_at_loan_end):g}"
            ),
        )
    return CheckResult(passed=True, details=details)


# ─── Extraction Confidence / Data Quality ────────────────────────

def check_data_quality(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """ID confidence and the lowest payslip confidence must reach min_extraction_confidence."""
    required = policy.min_extraction_confidence
    overall = extraction_confidence(data.identity, data.incomes)

    low: list[str] = []
    if data.identity.extraction_confidence < required:
        low.append(f"ID Card ({_pct(data.identity.extraction_confidence)})")
    for index, income in enumerate(data.incomes, start=1):
        if income.extraction_confidence < required:
            low.append(f"Payslip {index} ({_pct(income.extraction_confidence)})")

    details = {"overall_confidence": overall, "required_confidence": required}
    if low:
        return CheckResult(
            passed=False, confidence=overall,
            details={**details, "low_confidence_documents": tuple(low)},
            error_message=(
                f"Document image quality too low to read reliably: "
                f"{', '.join(low)}. Required: {_pct(required)}"
            ),
        )
    return CheckResult(passed=True, confidence=overall, details=details)


# ─── Minimum Salary ──────────────────────────────────────────────

def check_minimum_salary(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """Mean gross salary must reach min_salary."""
    average = average_gross_salary(data.incomes)
    details = {"average_salary": str(average), "min_salary": str(policy.min_salary)}
    if average < policy.min_salary:
        return CheckResult(
            passed=False, details=details,
            error_message=(
                f"Average salary ({average:,.0f}) is below minimum requirement "
                f"({policy.min_salary:,.0f})"
            ),
        )
    return CheckResult(passed=True, details=details)


# ─── Document Consistency (warnings only) ────────────────────────

def check_document_consistency(data: ApplicantData, policy: LendingPolicy) -> CheckResult:
    """Warn on an expired ID or a payslip whose net pay does not add up."""
    warnings: list[str] = []

    expiry = parse_document_date(data.identity.expiry_date)
    if expiry is not None and expiry < data.as_of:
        warnings.append(f"ID card appears to be expired ({data.identity.expiry_date})")

    for index, income in enumerate(data.incomes, start=1):
        gap = abs(income.net_salary - income.calculated_net_salary)
        if gap > policy.net_salary_tolerance:
            warnings.append(
                f"Payslip {index}: net salary does not match gross, "
                f"allowances and deductions (difference {gap:,.2f})"
            )

    if warnings:
        return CheckResult(
            passed=True, warning_message="; ".join(warnings),
            details={"issues": tuple(warnings)},
        )
    return CheckResult(passed=True)


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(RuleId.PAYSLIP_RECENCY, 1, check_payslip_recency),
    Rule(RuleId.PAYSLIP_COUNT, 2, check_payslip_count),
    Rule(RuleId.NAME_CONSISTENCY, 3, check_name_consistency),
    Rule(RuleId.RETIREMENT_AGE, 4, check_retirement_age),
    Rule(RuleId.DATA_QUALITY, 5, check_data_quality),
    Rule(RuleId.MINIMUM_SALARY, 6, check_minimum_salary),
    Rule(RuleId.DOCUMENT_CONSISTENCY, 7, check_document_consistency),
)


def evaluate_rule(rule: Rule, data: ApplicantData, policy: LendingPolicy) -> RuleOutcome:
    """Run one rule and stamp its identity and priority on the result.

    A policy error-message override becomes the headline of a failure; the check's own
    message follows it so the offending values stay visible.
    """
    result = rule.check(data, policy)
    error_message = result.error_message
    override = policy.rule_error_messages.get(rule.rule_id)
    if override and not result.passed:
        headline = override.rstrip(".")
        error_message = f"{headline}. {error_message}" if error_message else override
    return RuleOutcome(
        rule_id=rule.rule_id,
        passed=result.passed,
        priority=policy.rule_priorities.get(rule.rule_id, rule.priority),
        error_message=error_message,
        warning_message=result.warning_message,
        confidence=float(result.confidence),
        details=result.details,
    )


def active_rules(rules: Sequence[Rule], policy: LendingPolicy) -> list[Rule]:
    return [r for r in rules if r.rule_id not in policy.disabled_rules]


def outcome_sort_key(outcome: RuleOutcome) -> tuple[int, str]:
    """Priority first, rule id breaks ties. Completion order never matters."""
    return outcome.priority, outcome.rule_id.value
