"""Document Dates — tests for date parsing and calendar arithmetic.

Tests cover:
    - parse_document_date accepts every supported ID layout, None otherwise
    - parse_pay_period parses YYYY-MM and rejects bad months
    - completed_years counts birthdays on or before as_of
    - months_before counts calendar months (negative for future periods)
"""

from datetime import date

import pytest

from smartloan.core.document_dates import (
    completed_years, months_before, parse_document_date, parse_pay_period,
)


@pytest.mark.parametrize("text", ["1985-03-12", "12.03.1985", "12/03/1985", "12-03-1985"])
def test_parse_document_date_layouts(text):
    assert parse_document_date(text) == date(1985, 3, 12)


@pytest.mark.parametrize("text", ["", "   ", "March 1985", "1985-13-40", None])
def test_parse_document_date_unreadable(text):
    assert parse_document_date(text) is None


def test_parse_pay_period():
    assert parse_pay_period("2025-07") == (2025, 7)
    assert parse_pay_period(" 2025-12 ") == (2025, 12)


@pytest.mark.parametrize("text", ["2025-13", "2025-00", "July 2025", "2025", ""])
def test_parse_pay_period_rejects(text):
    assert parse_pay_period(text) is None


def test_completed_years_before_and_on_birthday():
    born = date(1985, 8, 15)
    assert completed_years(born, date(2025, 8, 14)) == 39
    assert completed_years(born, date(2025, 8, 15)) == 40


def test_months_before_across_year_boundary():
    assert months_before((2024, 11), date(2025, 2, 1)) == 3


def test_months_before_future_is_negative():
    assert months_before((2025, 9), date(2025, 8, 31)) == -1
