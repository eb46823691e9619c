"""Lending Policy — tests for policy coercion, check_policy and PolicyStore.

Tests cover:
    - numeric fields coerced to Decimal, rule ids coerced to RuleId
    - loan terms: default term only when none configured, per-term rate with fallback
    - rule overrides keyed by RuleId
    - check_policy: age window, DSR range, term, rates, thresholds
    - PolicyStore: swap publishes a new version, invalid policy leaves the old one live
"""

from decimal import Decimal

import pytest

from smartloan.core.domain_types import RuleId
from smartloan.core.errors import PolicyConfigurationError
from smartloan.core.policy import LendingPolicy, PolicyStore, check_policy


def test_defaults_are_valid():
    check_policy(LendingPolicy())


def test_numbers_coerced_to_decimal():
    policy = LendingPolicy(max_debt_service_ratio=0.4, min_salary=20000)
    assert policy.max_debt_service_ratio == Decimal("0.4")
    assert isinstance(policy.min_salary, Decimal)


def test_disabled_rules_coerced_from_values():
    policy = LendingPolicy(disabled_rules=["minimum_salary"])
    assert policy.disabled_rules == frozenset({RuleId.MINIMUM_SALARY})


def test_offer_terms_default_to_default_term():
    assert LendingPolicy().offer_terms() == (12,)


def test_offer_terms_keep_configured_order():
    policy = LendingPolicy(available_terms=[24, 6, 12], default_term_months=12)
    assert policy.offer_terms() == (24, 6, 12)


def test_interest_rate_for_term_falls_back_to_default():
    policy = LendingPolicy(available_terms=(6, 12), interest_rates={"6": 0.12})
    assert policy.interest_rate_for(6) == Decimal("0.12")
    assert policy.interest_rate_for(12) == Decimal("0.15")


def test_rule_overrides_coerced_from_values():
    policy = LendingPolicy(
        rule_priorities={"data_quality": "1"},
        rule_error_messages={"payslip_count": "Upload three payslips"},
    )
    assert policy.rule_priorities == {RuleId.DATA_QUALITY: 1}
    assert policy.rule_error_messages[RuleId.PAYSLIP_COUNT] == "Upload three payslips"


@pytest.mark.parametrize(
    "overrides,option",
    [
        ({"min_age": 65}, "min_age"),
        ({"max_debt_service_ratio": Decimal("0")}, "max_debt_service_ratio"),
        ({"max_debt_service_ratio": Decimal("1.2")}, "max_debt_service_ratio"),
        ({"default_term_months": 0}, "default_term_months"),
        ({"default_interest_rate": Decimal("-0.01")}, "default_interest_rate"),
        ({"max_loan_amount": Decimal("-1")}, "max_loan_amount"),
        ({"name_fuzzy_match_threshold": 1.5}, "name_fuzzy_match_threshold"),
        ({"conservative_offer_ratio": Decimal("0")}, "conservative_offer_ratio"),
        ({"min_salary": Decimal("Infinity")}, "min_salary"),
        ({"approve_standard_max_risk": 0.7}, "approve_standard_max_risk"),
        ({"available_terms": (0, 12)}, "available_terms"),
        ({"available_terms": (6, 24)}, "default_term_months"),
        ({"interest_rates": {12: "-0.1"}}, "interest_rates"),
        ({"low_confidence_warning_threshold": 1.1}, "low_confidence_warning_threshold"),
        ({"low_extraction_confidence_threshold": -0.1}, "low_extraction_confidence_threshold"),
    ],
)
def test_invalid_policy_rejected(overrides, option):
    with pytest.raises(PolicyConfigurationError) as exc_info:
        check_policy(LendingPolicy(**overrides))
    assert exc_info.value.option == option


def test_min_age_equal_to_max_age_allowed():
    check_policy(LendingPolicy(min_age=60, max_age=60))


# ─── PolicyStore ─────────────────────────────────────────────────

def test_store_rejects_invalid_initial_policy():
    with pytest.raises(PolicyConfigurationError):
        PolicyStore(LendingPolicy(default_term_months=-1))


def test_swap_publishes_new_version():
    store = PolicyStore(LendingPolicy())
    strict = LendingPolicy(max_debt_service_ratio=Decimal("0.3"))
    previous = store.swap(strict)
    assert previous == LendingPolicy()
    assert store.current is strict
    assert store.version == 2


def test_failed_swap_keeps_current_policy():
    store = PolicyStore(LendingPolicy())
    original = store.current
    with pytest.raises(PolicyConfigurationError):
        store.swap(LendingPolicy(min_age=99))
    assert store.current is original
    assert store.version == 1
