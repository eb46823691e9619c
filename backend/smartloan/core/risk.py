"""Risk Assessment — score, factors and recommended action for a validated application.

Invariants:
    - assess_risk() is PURE and total
    - risk_score in [0, 1]: weight per hard failure + shortfall below the confidence floor
    - Warnings never add to the score; only failed outcomes count
    - Action thresholds are inclusive: score <= standard max -> approve-standard
"""

from dataclasses import dataclass
from typing import Sequence

from smartloan.core.domain_types import RecommendedAction
from smartloan.core.policy import LendingPolicy
from smartloan.core.records import IncomeRecord, average_gross_salary
from smartloan.core.validation_engine import ApplicationVerdict


@dataclass(frozen=True)
class RiskAssessment:
    risk_score: float
    confidence_level: float
    risk_factors: tuple[str, ...]
    mitigating_factors: tuple[str, ...]
    recommended_action: RecommendedAction


def risk_score(verdict: ApplicationVerdict, policy: LendingPolicy) -> float:
    score = len(verdict.failed) * policy.risk_weight_per_failure
    score += max(0.0, policy.risk_confidence_floor - verdict.aggregate_confidence)
    # rounded so that 3 * 0.2 lands on the 0.6 threshold, not above it
    return round(min(score, 1.0), 6)


def recommend_action(score: float, policy: LendingPolicy) -> RecommendedAction:
    if score <= policy.approve_standard_max_risk:
        return RecommendedAction.APPROVE_STANDARD
    if score <= policy.approve_with_monitoring_max_risk:
        return RecommendedAction.APPROVE_WITH_MONITORING
    return RecommendedAction.MANUAL_REVIEW_REQUIRED


def assess_risk(
    verdict: ApplicationVerdict,
    incomes: Sequence[IncomeRecord],
    policy: LendingPolicy,
) -> RiskAssessment:
    """Score the verdict and explain the score in plain factors."""
    risk_factors = [
        f"Failed validation: {o.rule_id.value}" for o in verdict.failed
    ]
    if verdict.extraction_confidence < policy.low_extraction_confidence_threshold:
        risk_factors.append(
            f"Lower extraction confidence: {verdict.extraction_confidence * 100:.1f}%"
        )
    risk_factors.extend(f"Warning: {m}" for m in verdict.warning_messages)

    mitigating: list[str] = []
    if verdict.eligible:
        mitigating.append("Passed all critical business rules")
    if verdict.extraction_confidence >= policy.risk_confidence_floor:
        mitigating.append("Good document quality and extraction confidence")
    if incomes and average_gross_salary(incomes) > policy.high_income_threshold:
        mitigating.append("Above-average income level")

    score = risk_score(verdict, policy)
    return RiskAssessment(
        risk_score=score,
        confidence_level=verdict.aggregate_confidence,
        risk_factors=tuple(risk_factors),
        mitigating_factors=tuple(mitigating),
        recommended_action=recommend_action(score, policy),
    )
