"""Extracted Records — immutable value types produced by the upstream extraction step.

Invariants:
    - IdentityRecord and IncomeRecord are frozen: never mutated after extraction
    - Currency amounts are Decimal; confidences are floats in [0, 1]
    - Dates stay as the extractor's text; parsing happens in core/document_dates.py
    - deductions/allowances are read-only mappings (MappingProxyType)

Design Decisions:
    - Frozen dataclasses over Pydantic in core: no validation side effects, cheap equality
      for idempotence checks (ADR: pydantic lives at the API boundary in schemas/)
    - extraction_confidence() mirrors how the capture flow scored documents: only
      documents flagged valid contribute
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Sequence

from smartloan.core.errors import InvalidInputError


def _freeze(mapping: Mapping[str, Decimal] | None) -> Mapping[str, Decimal]:
    return MappingProxyType({k: Decimal(str(v)) for k, v in (mapping or {}).items()})


@dataclass(frozen=True)
class IdentityRecord:
    """Data extracted from the applicant's national identity document."""
    full_name: str
    id_number: str
    date_of_birth: str
    expiry_date: str = ""
    extraction_confidence: float = 1.0
    is_valid: bool = True


@dataclass(frozen=True)
class IncomeRecord:
    """Data extracted from a single payslip."""
    employee_name: str
    employer_name: str
    gross_salary: Decimal
    net_salary: Decimal
    pay_period: str                                 # "YYYY-MM"
    deductions: Mapping[str, Decimal] = field(default_factory=dict)
    allowances: Mapping[str, Decimal] = field(default_factory=dict)
    extraction_confidence: float = 1.0
    is_valid: bool = True

    def __post_init__(self):
        # frozen: assign through object.__setattr__
        object.__setattr__(self, "gross_salary", Decimal(str(self.gross_salary)))
        object.__setattr__(self, "net_salary", Decimal(str(self.net_salary)))
        object.__setattr__(self, "deductions", _freeze(self.deductions))
        object.__setattr__(self, "allowances", _freeze(self.allowances))

    def __hash__(self) -> int:
        return hash((
            self.employee_name, self.employer_name, self.gross_salary,
            self.net_salary, self.pay_period, self.extraction_confidence,
            self.is_valid, tuple(sorted(self.deductions.items())),
            tuple(sorted(self.allowances.items())),
        ))

    @property
    def total_deductions(self) -> Decimal:
        return sum(self.deductions.values(), Decimal("0"))

    @property
    def total_allowances(self) -> Decimal:
        return sum(self.allowances.values(), Decimal("0"))

    @property
    def calculated_net_salary(self) -> Decimal:
        return self.gross_salary + self.total_allowances - self.total_deductions


def check_records(identity: IdentityRecord, incomes: Sequence[IncomeRecord]) -> None:
    """Reject structurally unusable input. Raises InvalidInputError."""
    if not incomes:
        raise InvalidInputError(
            "At least one income record is required", "incomes",
        )
    _check_confidence(identity.extraction_confidence, "identity.extraction_confidence")
    for i, income in enumerate(incomes):
        _check_confidence(
            income.extraction_confidence, f"incomes[{i}].extraction_confidence",
        )
        amounts = {
            "gross_salary": income.gross_salary,
            "net_salary": income.net_salary,
            **{f"deductions.{k}": v for k, v in income.deductions.items()},
            **{f"allowances.{k}": v for k, v in income.allowances.items()},
        }
        for name, value in amounts.items():
            if not value.is_finite():
                raise InvalidInputError(
                    f"Amount must be a finite number, got {value}",
                    f"incomes[{i}].{name}",
                )


def _check_confidence(value: float, field_name: str) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidInputError(
            f"Confidence must be a finite number, got {value!r}", field_name,
        )
    if not 0.0 <= value <= 1.0:
        raise InvalidInputError(
            f"Confidence must lie in [0, 1], got {value}", field_name,
        )


def average_gross_salary(incomes: Sequence[IncomeRecord]) -> Decimal:
    """Arithmetic mean of gross salary — the income basis for every affordability figure."""
    return sum((i.gross_salary for i in incomes), Decimal("0")) / len(incomes)


def average_net_salary(incomes: Sequence[IncomeRecord]) -> Decimal:
    return sum((i.net_salary for i in incomes), Decimal("0")) / len(incomes)


def extraction_confidence(
    identity: IdentityRecord, incomes: Sequence[IncomeRecord],
) -> float:
    """Overall extraction confidence: mean of ID and mean valid-payslip confidence.

    Documents not flagged valid contribute nothing (an invalid ID counts as 0.0).
    """
    id_confidence = identity.extraction_confidence if identity.is_valid else 0.0
    payslip_confidences = [i.extraction_confidence for i in incomes if i.is_valid]
    if not payslip_confidences:
        return id_confidence
    mean_payslip = sum(payslip_confidences) / len(payslip_confidences)
    return (id_confidence + mean_payslip) / 2.0


def most_recent_income(incomes: Sequence[IncomeRecord]) -> IncomeRecord:
    """Latest pay period wins; ties keep input order."""
    return max(incomes, key=lambda i: i.pay_period)
