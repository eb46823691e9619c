"""Document Dates — parsing and calendar arithmetic for dates read off documents.

Invariants:
    - Parsers return None on unreadable input, never raise (rules turn None into a failure)
    - completed_years counts whole birthdays passed on or before as_of
    - months_before is whole calendar months; negative means the period is in the future
"""

from datetime import date, datetime

DOCUMENT_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%d-%m-%Y")


def parse_document_date(text: str) -> date | None:
    """Parse a date printed on an ID card. Tries each supported layout in turn."""
    text = (text or "").strip()
    if not text:
        return None
    for fmt in DOCUMENT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_pay_period(text: str) -> tuple[int, int] | None:
    """Parse a payslip period "YYYY-MM" into (year, month)."""
    parts = (text or "").strip().split("-")
    if len(parts) != 2:
        return None
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not 1 <= month <= 12 or year < 1900:
        return None
    return year, month


def completed_years(born: date, as_of: date) -> int:
    """Age in completed years."""
    years = as_of.year - born.year
    if (as_of.month, as_of.day) < (born.month, born.day):
        years -= 1
    return years


def months_before(period: tuple[int, int], as_of: date) -> int:
    """Whole calendar months from a pay period to the month of as_of."""
    year, month = period
    return (as_of.year - year) * 12 + (as_of.month - month)
