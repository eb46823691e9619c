"""Extracted Records — tests for record construction and derived figures.

Tests cover:
    - IncomeRecord coerces amounts to Decimal and freezes its mappings
    - calculated net salary
    - averages, overall extraction confidence, most recent payslip
    - check_records structural rejections
"""

from decimal import Decimal

import pytest

from smartloan.core.errors import InvalidInputError
from smartloan.core.records import (
    average_gross_salary, average_net_salary, check_records, extraction_confidence,
    most_recent_income,
)
from tests.builders import make_identity, make_income


def test_income_amounts_coerced_to_decimal():
    income = make_income(gross_salary=85000, net_salary="70000.50",
                         deductions={"PAYE": 14999.5})
    assert income.gross_salary == Decimal("85000")
    assert income.net_salary == Decimal("70000.50")
    assert income.deductions["PAYE"] == Decimal("14999.5")


def test_income_mappings_are_read_only():
    income = make_income(deductions={"PAYE": Decimal("100")})
    with pytest.raises(TypeError):
        income.deductions["NHIF"] = Decimal("50")


def test_income_records_hashable():
    assert len({make_income(), make_income()}) == 1


def test_calculated_net_salary():
    income = make_income(
        gross_salary=Decimal("85000"),
        allowances={"house": Decimal("5000")},
        deductions={"PAYE": Decimal("15000"), "NHIF": Decimal("1700")},
    )
    assert income.calculated_net_salary == Decimal("73300")


def test_averages():
    incomes = [
        make_income(gross_salary=Decimal("80000"), net_salary=Decimal("60000")),
        make_income(gross_salary=Decimal("90000"), net_salary=Decimal("70000")),
    ]
    assert average_gross_salary(incomes) == Decimal("85000")
    assert average_net_salary(incomes) == Decimal("65000")


def test_extraction_confidence_averages_id_and_payslips():
    identity = make_identity(extraction_confidence=0.9)
    incomes = [make_income(extraction_confidence=0.8),
               make_income(extraction_confidence=0.6)]
    assert extraction_confidence(identity, incomes) == pytest.approx(0.8)


def test_extraction_confidence_ignores_invalid_documents():
    identity = make_identity(extraction_confidence=0.9, is_valid=False)
    incomes = [make_income(extraction_confidence=0.8),
               make_income(extraction_confidence=0.1, is_valid=False)]
    assert extraction_confidence(identity, incomes) == pytest.approx(0.4)


def test_most_recent_income_by_period():
    incomes = [make_income(pay_period="2025-05"), make_income(pay_period="2025-07"),
               make_income(pay_period="2025-06")]
    assert most_recent_income(incomes).pay_period == "2025-07"


def test_check_records_rejects_empty_incomes():
    with pytest.raises(InvalidInputError) as exc_info:
        check_records(make_identity(), [])
    assert exc_info.value.field == "incomes"


def test_check_records_rejects_infinite_deduction():
    incomes = [make_income(deductions={"PAYE": Decimal("Infinity")})]
    with pytest.raises(InvalidInputError) as exc_info:
        check_records(make_identity(), incomes)
    assert exc_info.value.field == "incomes[0].deductions.PAYE"


def test_check_records_rejects_confidence_out_of_range():
    with pytest.raises(InvalidInputError) as exc_info:
        check_records(make_identity(), [make_income(extraction_confidence=-0.1)])
    assert exc_info.value.field == "incomes[0].extraction_confidence"
