"""Policy Loader — JSON policy documents into validated LendingPolicy objects.

Invariants:
    - Every failure surfaces as PolicyConfigurationError
    - Omitted options keep their built-in defaults
    - Rule parameters, priorities and error messages reach the policy; a parameter on
      the wrong rule is rejected
    - loanTerms become selectable terms with per-term rates
    - A failed reload leaves the live policy untouched
"""

import json
from decimal import Decimal

import pytest

from smartloan.core.domain_types import RuleId
from smartloan.core.errors import PolicyConfigurationError
from smartloan.core.policy import LendingPolicy
from smartloan.infrastructure.policy_loader import (
    load_policy, load_policy_store, parse_policy, reload_policy,
)

POLICY_DOCUMENT = {
    "lendingPolicy": {
        "maxDSR": 0.4,
        "minAge": 21,
        "maxAge": 65,
        "minSalary": 20000,
        "defaultInterestRate": 0.18,
    },
    "validationRules": {
        "payslipRecency": {
            "enabled": True, "priority": 9, "maxAgeMonths": 1,
            "errorMessage": "Please upload recent payslips",
        },
        "nameConsistency": {"enabled": True, "fuzzyMatchThreshold": 0.99},
        "dataQuality": {"enabled": True, "minConfidence": 0.97},
        "retirementAge": {"enabled": True, "maxAge": 62},
        "payslipCount": {"enabled": False, "priority": 2},
        "affordability": {"enabled": True},
    },
    "loanTerms": {
        "availableTerms": [6, 12, 24],
        "defaultTerm": 12,
        "interestRates": {"6": 0.12, "24": 0.18},
    },
    "errorMessages": {"general": "Something went wrong"},
}


@pytest.fixture
def policy_file(tmp_path):
    path = tmp_path / "lending_policy.json"
    path.write_text(json.dumps(POLICY_DOCUMENT), encoding="utf-8")
    return path


def test_load_maps_camel_case_options(policy_file):
    policy = load_policy(policy_file)
    assert policy.max_debt_service_ratio == Decimal("0.4")
    assert policy.min_age == 21
    assert policy.min_salary == Decimal("20000")
    assert policy.default_interest_rate == Decimal("0.18")


def test_omitted_options_keep_defaults(policy_file):
    policy = load_policy(policy_file)
    assert policy.default_term_months == LendingPolicy().default_term_months
    assert policy.offer_validity_hours == 24


def test_disabled_rule_toggles(policy_file):
    policy = load_policy(policy_file)
    assert policy.disabled_rules == frozenset({RuleId.PAYSLIP_COUNT})


def test_no_path_uses_defaults():
    assert load_policy(None) == LendingPolicy()


def test_missing_file_is_configuration_error(tmp_path):
    with pytest.raises(PolicyConfigurationError) as exc_info:
        load_policy(tmp_path / "absent.json")
    assert exc_info.value.option == "policy_file"


def test_malformed_json_is_configuration_error():
    with pytest.raises(PolicyConfigurationError):
        parse_policy("{not json")


def test_unknown_option_rejected():
    with pytest.raises(PolicyConfigurationError) as exc_info:
        parse_policy(json.dumps({"lendingPolicy": {"maxDsrr": 0.4}}))
    assert "maxDsrr" in exc_info.value.option


def test_inconsistent_policy_rejected():
    with pytest.raises(PolicyConfigurationError) as exc_info:
        parse_policy(json.dumps({"lendingPolicy": {"minAge": 70, "maxAge": 60}}))
    assert exc_info.value.option == "min_age"


def test_reload_swaps_policy(policy_file):
    store = load_policy_store(None)
    reload_policy(store, policy_file)
    assert store.version == 2
    assert store.current.min_age == 21


def test_failed_reload_keeps_live_policy(tmp_path):
    store = load_policy_store(None)
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"lendingPolicy": {"maxDSR": 1.5}}), encoding="utf-8")
    with pytest.raises(PolicyConfigurationError):
        reload_policy(store, bad)
    assert store.version == 1
    assert store.current == LendingPolicy()


def test_rule_parameters_reach_policy(policy_file):
    policy = load_policy(policy_file)
    assert policy.payslip_recency_months == 1
    assert policy.name_fuzzy_match_threshold == 0.99
    assert policy.min_extraction_confidence == 0.97


def test_rule_parameter_overrides_lending_policy_option(policy_file):
    # lendingPolicy.maxAge is 65, retirementAge.maxAge wins
    assert load_policy(policy_file).max_age == 62


def test_rule_priority_and_message_overrides(policy_file):
    policy = load_policy(policy_file)
    assert policy.rule_priorities == {RuleId.PAYSLIP_RECENCY: 9, RuleId.PAYSLIP_COUNT: 2}
    assert policy.rule_error_messages == {
        RuleId.PAYSLIP_RECENCY: "Please upload recent payslips",
    }


def test_affordability_block_maps_to_minimum_salary():
    policy = parse_policy(json.dumps({
        "validationRules": {"affordability": {"minSalary": 30000, "maxDSR": 0.35}},
    }))
    assert policy.min_salary == Decimal("30000")
    assert policy.max_debt_service_ratio == Decimal("0.35")


def test_parameter_on_wrong_rule_rejected():
    with pytest.raises(PolicyConfigurationError) as exc_info:
        parse_policy(json.dumps({"validationRules": {"payslipCount": {"maxAge": 70}}}))
    assert "maxAge" in exc_info.value.message


def test_unknown_rule_option_rejected():
    with pytest.raises(PolicyConfigurationError):
        parse_policy(json.dumps({"validationRules": {"dataQuality": {"minConfidense": 0.9}}}))


def test_loan_terms_reach_policy(policy_file):
    policy = load_policy(policy_file)
    assert policy.offer_terms() == (6, 12, 24)
    assert policy.interest_rate_for(6) == Decimal("0.12")
    assert policy.interest_rate_for(24) == Decimal("0.18")
    assert policy.interest_rate_for(12) == policy.default_interest_rate


def test_default_term_outside_available_terms_rejected():
    with pytest.raises(PolicyConfigurationError) as exc_info:
        parse_policy(json.dumps({"loanTerms": {"availableTerms": [6], "defaultTerm": 12}}))
    assert exc_info.value.option == "default_term_months"
