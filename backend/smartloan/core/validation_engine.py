"""Validation Engine — runs the rule set and folds outcomes into one verdict.

Invariants:
    - validate() is PURE given its arguments: as_of is injected, no clock, no randomness
    - Outcomes are ordered by (priority, rule id), never by completion order
    - eligible == all(outcome.passed); a failed rule is data, not an exception
    - Raises only for structural problems (empty incomes, malformed policy, non-finite input)
    - Sequential and executor-backed evaluation produce equal verdicts

Design Decisions:
    - Optional concurrent.futures.Executor for fan-out: rules share nothing, so any
      executor works; the caller owns its lifecycle
    - aggregate_confidence is the mean of outcome confidence weights: rules without a
      natural confidence contribute 1.0
"""

from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from smartloan.core.policy import LendingPolicy, check_policy
from smartloan.core.records import (
    IdentityRecord, IncomeRecord, check_records, extraction_confidence,
)
from smartloan.core.rules import (
    DEFAULT_RULES, ApplicantData, Rule, RuleOutcome,
    active_rules, evaluate_rule, outcome_sort_key,
)


@dataclass(frozen=True)
class ApplicationVerdict:
    """Aggregated eligibility decision plus every outcome that produced it."""
    eligible: bool
    outcomes: tuple[RuleOutcome, ...]
    aggregate_confidence: float
    extraction_confidence: float
    evaluated_on: date

    @property
    def failed(self) -> tuple[RuleOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.passed)

    @property
    def warnings(self) -> tuple[RuleOutcome, ...]:
        return tuple(o for o in self.outcomes if o.has_warning)

    @property
    def error_messages(self) -> list[str]:
        return [o.error_message for o in self.failed if o.error_message]

    @property
    def warning_messages(self) -> list[str]:
        return [o.warning_message for o in self.warnings if o.warning_message]

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


def validate(
    identity: IdentityRecord,
    incomes: Sequence[IncomeRecord],
    policy: LendingPolicy,
    as_of: date,
    *,
    executor: Executor | None = None,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> ApplicationVerdict:
    """Evaluate every enabled rule and aggregate.

    Raises:
        PolicyConfigurationError: policy is structurally invalid.
        InvalidInputError: incomes empty, or a record carries non-finite numbers.
    """
    check_policy(policy)
    check_records(identity, incomes)

    data = ApplicantData(identity=identity, incomes=tuple(incomes), as_of=as_of)
    selected = active_rules(rules, policy)

    if executor is None:
        outcomes = [evaluate_rule(rule, data, policy) for rule in selected]
    else:
        futures = [
            executor.submit(evaluate_rule, rule, data, policy) for rule in selected
        ]
        outcomes = [f.result() for f in futures]

    ordered = tuple(sorted(outcomes, key=outcome_sort_key))
    return ApplicationVerdict(
        eligible=all(o.passed for o in ordered),
        outcomes=ordered,
        aggregate_confidence=_mean_confidence(ordered),
        extraction_confidence=extraction_confidence(identity, incomes),
        evaluated_on=as_of,
    )


def _mean_confidence(outcomes: Sequence[RuleOutcome]) -> float:
    if not outcomes:
        return 1.0
    return sum(o.confidence for o in outcomes) / len(outcomes)
