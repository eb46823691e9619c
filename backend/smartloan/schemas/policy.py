"""Policy Schemas — Pydantic model of the JSON lending-policy document.

Invariants:
    - Keys are camelCase on the wire (lendingPolicy.maxDSR, validationRules.payslipRecency.enabled)
    - Omitted options fall back to LendingPolicy defaults
    - to_policy() is the only way a document becomes a core LendingPolicy
    - Unknown options are rejected in lendingPolicy, loanTerms and every rule entry:
      a typo must not silently fall back to a default
    - A rule parameter belongs to exactly one rule (maxAgeMonths -> payslipRecency);
      the same key on another rule is rejected
    - A rule parameter overrides the matching lendingPolicy option;
      loanTerms.defaultTerm overrides lendingPolicy.defaultTermMonths
    - The errorMessages block and rules this engine does not run are ignored

Design Decisions:
    - Cross-field checks (min_age <= max_age, DSR range, default term among available
      terms) stay in core.check_policy: one gate for every policy source, file or code
    - "affordability" is read as the minimum_salary rule: it carries minSalary and maxDSR,
      and the DSR ceiling itself is enforced by the offer generator
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

from smartloan.core.domain_types import RuleId
from smartloan.core.policy import LendingPolicy

# rule -> {document parameter: LendingPolicy field}
RULE_PARAMETERS: dict[RuleId, dict[str, str]] = {
    RuleId.PAYSLIP_RECENCY: {"max_age_months": "payslip_recency_months"},
    RuleId.PAYSLIP_COUNT: {"min_payslips": "min_payslips"},
    RuleId.NAME_CONSISTENCY: {"fuzzy_match_threshold": "name_fuzzy_match_threshold"},
    RuleId.RETIREMENT_AGE: {"max_age": "max_age"},
    RuleId.DATA_QUALITY: {"min_confidence": "min_extraction_confidence"},
    RuleId.MINIMUM_SALARY: {"min_salary": "min_salary", "max_dsr": "max_debt_service_ratio"},
}

_RULE_KEY_ALIASES = {"affordability": RuleId.MINIMUM_SALARY.value}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid",
    )


class LendingPolicyDocument(_CamelModel):
    """lendingPolicy block. Every option optional; None means the built-in default."""
    max_dsr: Decimal | None = Field(None, alias="maxDSR")
    min_age: int | None = None
    max_age: int | None = None
    min_salary: Decimal | None = None
    max_loan_amount: Decimal | None = None
    min_loan_amount: Decimal | None = None
    default_interest_rate: Decimal | None = None
    default_term_months: int | None = None
    payslip_recency_months: int | None = None
    min_extraction_confidence: float | None = None
    name_fuzzy_match_threshold: float | None = None
    conservative_offer_ratio: Decimal | None = None
    offer_validity_hours: int | None = Field(None, gt=0)
    processing_fee_rate: Decimal | None = None
    processing_fee_min: Decimal | None = None
    processing_fee_max: Decimal | None = None
    low_confidence_condition_threshold: float | None = None
    low_confidence_warning_threshold: float | None = None
    high_dsr_warning_ratio: Decimal | None = None
    risk_weight_per_failure: float | None = None
    risk_confidence_floor: float | None = None
    low_extraction_confidence_threshold: float | None = None
    approve_standard_max_risk: float | None = None
    approve_with_monitoring_max_risk: float | None = None
    high_income_threshold: Decimal | None = None
    min_payslips: int | None = Field(None, ge=0)
    net_salary_tolerance: Decimal | None = None


class RuleSettings(_CamelModel):
    """One validationRules entry: toggle, display overrides and the rule's own parameter."""
    enabled: bool = True
    priority: int | None = None
    error_message: str | None = Field(None, min_length=1)

    max_age_months: int | None = Field(None, gt=0)
    min_payslips: int | None = Field(None, ge=0)
    fuzzy_match_threshold: float | None = None
    max_age: int | None = None
    min_confidence: float | None = None
    min_salary: Decimal | None = None
    max_dsr: Decimal | None = Field(None, alias="maxDSR")

    def parameters(self) -> dict:
        return self.model_dump(
            exclude_none=True, exclude={"enabled", "priority", "error_message"},
        )


class LoanTermsDocument(_CamelModel):
    """loanTerms block: selectable terms and per-term annual rates keyed by "12", "24"..."""
    available_terms: list[PositiveInt] | None = None
    default_term: PositiveInt | None = None
    interest_rates: dict[int, Decimal] = Field(default_factory=dict)


class PolicyDocument(_CamelModel):
    """Top-level policy file: lendingPolicy, validationRules and loanTerms blocks."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )

    lending_policy: LendingPolicyDocument = Field(default_factory=LendingPolicyDocument)
    validation_rules: dict[RuleId, RuleSettings] = Field(default_factory=dict)
    loan_terms: LoanTermsDocument = Field(default_factory=LoanTermsDocument)

    @field_validator("validation_rules", mode="before")
    @classmethod
    def snake_case_rule_keys(cls, v):
        """payslipRecency -> payslip_recency; rules this engine does not run are dropped."""
        if not isinstance(v, dict):
            return v
        known = {r.value for r in RuleId}
        snake = {to_snake(k): t for k, t in v.items() if isinstance(k, str)}
        snake = {_RULE_KEY_ALIASES.get(k, k): t for k, t in snake.items()}
        return {k: t for k, t in snake.items() if k in known}

    @model_validator(mode="after")
    def parameters_match_rules(self):
        for rule, settings in self.validation_rules.items():
            allowed = RULE_PARAMETERS.get(rule, {})
            for name in settings.parameters():
                if name not in allowed:
                    raise ValueError(
                        f"{to_camel(name)} is not a parameter of the {rule.value} rule"
                    )
        return self

    def to_policy(self) -> LendingPolicy:
        options = self.lending_policy.model_dump(exclude_none=True)
        if "max_dsr" in options:
            options["max_debt_service_ratio"] = options.pop("max_dsr")

        for rule, settings in self.validation_rules.items():
            for name, value in settings.parameters().items():
                options[RULE_PARAMETERS[rule][name]] = value

        terms = self.loan_terms
        if terms.available_terms is not None:
            options["available_terms"] = tuple(terms.available_terms)
        if terms.default_term is not None:
            options["default_term_months"] = terms.default_term
        if terms.interest_rates:
            options["interest_rates"] = terms.interest_rates

        rules = self.validation_rules
        return LendingPolicy(
            **options,
            disabled_rules=frozenset(r for r, s in rules.items() if not s.enabled),
            rule_priorities={r: s.priority for r, s in rules.items() if s.priority is not None},
            rule_error_messages={
                r: s.error_message for r, s in rules.items() if s.error_message
            },
        )
