"""Test builders — extracted records and fixed instants shared across test modules."""

from datetime import date, datetime, timezone
from decimal import Decimal

from smartloan.core.records import IdentityRecord, IncomeRecord

AS_OF = date(2025, 8, 15)
NOW = datetime(2025, 8, 15, 9, 30, tzinfo=timezone.utc)


def make_identity(**overrides) -> IdentityRecord:
    fields = {
        "full_name": "John Mwangi Kariuki",
        "id_number": "12345678",
        "date_of_birth": "1985-03-12",
        "expiry_date": "2030-03-12",
        "extraction_confidence": 0.95,
        "is_valid": True,
    }
    fields.update(overrides)
    return IdentityRecord(**fields)


def make_income(**overrides) -> IncomeRecord:
    fields = {
        "employee_name": "John M. Kariuki",
        "employer_name": "Acme Logistics Ltd",
        "gross_salary": Decimal("85000"),
        "net_salary": Decimal("85000"),
        "pay_period": "2025-07",
        "deductions": {},
        "allowances": {},
        "extraction_confidence": 0.95,
        "is_valid": True,
    }
    fields.update(overrides)
    return IncomeRecord(**fields)


def make_incomes(periods=("2025-07", "2025-06", "2025-05"), **overrides) -> list[IncomeRecord]:
    return [make_income(pay_period=p, **overrides) for p in periods]


def application_payload(**identity_overrides) -> dict:
    """JSON body for the application endpoints (eligible by default on AS_OF)."""
    identity = {
        "full_name": "John Mwangi Kariuki",
        "id_number": "12345678",
        "date_of_birth": "1985-03-12",
        "expiry_date": "2030-03-12",
        "extraction_confidence": 0.95,
    }
    identity.update(identity_overrides)
    return {
        "identity": identity,
        "incomes": [
            {
                "employee_name": "John M. Kariuki",
                "employer_name": "Acme Logistics Ltd",
                "gross_salary": "85000",
                "net_salary": "85000",
                "pay_period": period,
                "extraction_confidence": 0.95,
            }
            for period in ("2025-07", "2025-06")
        ],
        "as_of": AS_OF.isoformat(),
    }
