"""Lending Policy — immutable thresholds and the swap-only store that holds them.

Invariants:
    - LendingPolicy is frozen: a policy is never partially mutated
    - check_policy() is the single gate for structural policy validity:
      min_age <= max_age, max_debt_service_ratio in (0, 1], finite numbers, positive terms
    - offer_terms() is never empty: no configured terms means the default term only
    - interest_rate_for() falls back to default_interest_rate for a term without its own rate
    - PolicyStore.swap() validates the replacement BEFORE publishing it; readers see either
      the old or the new policy, never a mix

Design Decisions:
    - Empirical constants (80% haircut, 0.2 risk per failure, 0.8 confidence floor, action
      thresholds) live here as policy fields, not literals, pending domain-expert review
    - Per-rule priority and error-message overrides are plain mappings keyed by RuleId,
      frozen behind MappingProxyType like every other policy value
    - Reference assignment is atomic in CPython, so the store needs no lock
    - The core never reads policy files; infrastructure/policy_loader.py builds LendingPolicy
"""

import math
from dataclasses import dataclass, field, fields
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from smartloan.core.errors import PolicyConfigurationError
from smartloan.core.domain_types import RuleId


@dataclass(frozen=True)
class LendingPolicy:
    """Every lending threshold the engine consults."""

    max_debt_service_ratio: Decimal = Decimal("0.50")
    min_age: int = 18
    max_age: int = 60
    min_salary: Decimal = Decimal("15000")
    max_loan_amount: Decimal = Decimal("500000")
    default_interest_rate: Decimal = Decimal("0.15")   # annual
    default_term_months: int = 12
    payslip_recency_months: int = 3
    min_extraction_confidence: float = 0.85
    name_fuzzy_match_threshold: float = 0.80

    # Loan terms
    available_terms: tuple[int, ...] = ()
    interest_rates: Mapping[int, Decimal] = field(default_factory=dict)

    # Offer shaping
    conservative_offer_ratio: Decimal = Decimal("0.8")
    min_loan_amount: Decimal = Decimal("0")
    offer_validity_hours: int = 24
    processing_fee_rate: Decimal = Decimal("0.02")
    processing_fee_min: Decimal = Decimal("1000")
    processing_fee_max: Decimal = Decimal("5000")
    low_confidence_condition_threshold: float = 0.95
    low_confidence_warning_threshold: float = 0.9
    high_dsr_warning_ratio: Decimal = Decimal("0.40")

    # Risk scoring
    risk_weight_per_failure: float = 0.2
    risk_confidence_floor: float = 0.8
    low_extraction_confidence_threshold: float = 0.9
    approve_standard_max_risk: float = 0.3
    approve_with_monitoring_max_risk: float = 0.6
    high_income_threshold: Decimal = Decimal("50000")

    # Supplementary rules
    min_payslips: int = 1
    net_salary_tolerance: Decimal = Decimal("1000")
    disabled_rules: frozenset[RuleId] = field(default_factory=frozenset)
    rule_priorities: Mapping[RuleId, int] = field(default_factory=dict)
    rule_error_messages: Mapping[RuleId, str] = field(default_factory=dict)

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is Decimal and not isinstance(value, Decimal):
                object.__setattr__(self, f.name, Decimal(str(value)))
        object.__setattr__(
            self, "disabled_rules",
            frozenset(RuleId(r) for r in self.disabled_rules),
        )
        object.__setattr__(
            self, "available_terms", tuple(int(t) for t in self.available_terms),
        )
        object.__setattr__(self, "interest_rates", MappingProxyType({
            int(term): Decimal(str(rate)) for term, rate in self.interest_rates.items()
        }))
        object.__setattr__(self, "rule_priorities", MappingProxyType({
            RuleId(r): int(p) for r, p in self.rule_priorities.items()
        }))
        object.__setattr__(self, "rule_error_messages", MappingProxyType({
            RuleId(r): str(m) for r, m in self.rule_error_messages.items()
        }))

    def offer_terms(self) -> tuple[int, ...]:
        """Terms an applicant may choose from, in configured order."""
        return self.available_terms or (self.default_term_months,)

    def interest_rate_for(self, term_months: int) -> Decimal:
        return self.interest_rates.get(term_months, self.default_interest_rate)


def check_policy(policy: LendingPolicy) -> None:
    """Reject structurally invalid policy. Raises PolicyConfigurationError."""
    for f in fields(policy):
        value = getattr(policy, f.name)
        if isinstance(value, Decimal) and not value.is_finite():
            raise PolicyConfigurationError(f"must be finite, got {value}", f.name)
        if isinstance(value, float) and not math.isfinite(value):
            raise PolicyConfigurationError(f"must be finite, got {value}", f.name)

    if policy.min_age > policy.max_age:
        raise PolicyConfigurationError(
            f"min_age ({policy.min_age}) exceeds max_age ({policy.max_age})",
            "min_age",
        )
    if not Decimal("0") < policy.max_debt_service_ratio <= Decimal("1"):
        raise PolicyConfigurationError(
            f"must lie in (0, 1], got {policy.max_debt_service_ratio}",
            "max_debt_service_ratio",
        )
    if policy.default_term_months <= 0:
        raise PolicyConfigurationError(
            f"must be positive, got {policy.default_term_months}",
            "default_term_months",
        )
    if policy.default_interest_rate < 0:
        raise PolicyConfigurationError(
            f"must not be negative, got {policy.default_interest_rate}",
            "default_interest_rate",
        )
    if policy.max_loan_amount < 0:
        raise PolicyConfigurationError(
            f"must not be negative, got {policy.max_loan_amount}",
            "max_loan_amount",
        )
    if policy.min_loan_amount < 0:
        raise PolicyConfigurationError(
            f"must not be negative, got {policy.min_loan_amount}",
            "min_loan_amount",
        )
    for term in policy.available_terms:
        if term <= 0:
            raise PolicyConfigurationError(f"must be positive, got {term}", "available_terms")
    if policy.available_terms and policy.default_term_months not in policy.available_terms:
        raise PolicyConfigurationError(
            f"default term {policy.default_term_months} is not one of "
            f"{list(policy.available_terms)}",
            "default_term_months",
        )
    for term, rate in policy.interest_rates.items():
        if not rate.is_finite() or rate < 0:
            raise PolicyConfigurationError(
                f"rate for {term} months must be finite and not negative, got {rate}",
                "interest_rates",
            )
    for name in (
        "name_fuzzy_match_threshold", "min_extraction_confidence",
        "low_confidence_warning_threshold", "low_extraction_confidence_threshold",
    ):
        value = getattr(policy, name)
        if not 0.0 <= value <= 1.0:
            raise PolicyConfigurationError(f"must lie in [0, 1], got {value}", name)
    if not Decimal("0") < policy.conservative_offer_ratio <= Decimal("1"):
        raise PolicyConfigurationError(
            f"must lie in (0, 1], got {policy.conservative_offer_ratio}",
            "conservative_offer_ratio",
        )
    if policy.approve_standard_max_risk > policy.approve_with_monitoring_max_risk:
        raise PolicyConfigurationError(
            "approve_standard_max_risk exceeds approve_with_monitoring_max_risk",
            "approve_standard_max_risk",
        )


class PolicyStore:
    """Holds the live LendingPolicy. Replace-by-swap, never edit in place."""

    def __init__(self, policy: LendingPolicy):
        check_policy(policy)
        self._policy = policy
        self._version = 1

    @property
    def current(self) -> LendingPolicy:
        return self._policy

    @property
    def version(self) -> int:
        return self._version

    def swap(self, policy: LendingPolicy) -> LendingPolicy:
        """Validate and publish a replacement policy. Returns the previous one."""
        check_policy(policy)
        previous = self._policy
        self._policy = policy
        self._version += 1
        return previous
