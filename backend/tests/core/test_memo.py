"""Disbursement Memo — tests for build, supersede, record and text forms.

Tests cover:
    - build_memo: missing offer rejected, applicant figures are payslip averages
    - supersede_memo: revision + 1, original untouched, illegal transitions rejected
    - memo_to_record: camelCase keys, amounts to the cent, DSR as a fraction
    - memo_from_record restores what memo_to_record writes
    - format_memo_text
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from smartloan.core.domain_types import ApplicationId, MemoStatus, RecommendedAction
from smartloan.core.errors import InvalidStatusTransitionError, OfferUnavailableError
from smartloan.core.memo import (
    APPROVED_BY, build_memo, format_memo_text, memo_from_record, memo_to_record,
    supersede_memo,
)
from smartloan.core.offers import generate_offer
from smartloan.core.policy import LendingPolicy
from smartloan.core.validation_engine import validate
from tests.builders import AS_OF, NOW, make_identity, make_income

POLICY = LendingPolicy()
APP_ID = ApplicationId("SL202508150930001234")


def _make_memo(identity=None, incomes=None):
    identity = identity or make_identity()
    incomes = incomes or [
        make_income(pay_period="2025-06", employer_name="Old Employer Ltd",
                    gross_salary=Decimal("80000"), net_salary=Decimal("80000")),
        make_income(pay_period="2025-07", gross_salary=Decimal("90000"),
                    net_salary=Decimal("90000")),
    ]
    verdict = validate(identity, incomes, POLICY, AS_OF)
    offer = generate_offer(identity, incomes, verdict, POLICY, NOW)
    return build_memo(APP_ID, identity, incomes, verdict, offer, True, True, NOW, POLICY)


# ─── build_memo ──────────────────────────────────────────────────

def test_missing_offer_rejected():
    identity, incomes = make_identity(), [make_income(pay_period="2024-01")]
    verdict = validate(identity, incomes, POLICY, AS_OF)
    with pytest.raises(OfferUnavailableError):
        build_memo(APP_ID, identity, incomes, verdict, None, True, True, NOW, POLICY)


def test_applicant_uses_average_salary_and_latest_employer():
    memo = _make_memo()
    assert memo.applicant.gross_salary == Decimal("85000")
    assert memo.applicant.net_salary == Decimal("85000")
    assert memo.applicant.employer_name == "Acme Logistics Ltd"


def test_new_memo_is_pending_first_revision():
    memo = _make_memo()
    assert memo.status == MemoStatus.APPROVED_PENDING_DISBURSEMENT
    assert memo.revision == 1
    assert memo.approval.approved_by == APPROVED_BY
    assert memo.verification.business_rules_pass
    assert memo.risk.recommended_action == RecommendedAction.APPROVE_STANDARD


# ─── supersede_memo ──────────────────────────────────────────────

def test_supersede_appends_revision():
    memo = _make_memo()
    later = NOW + timedelta(days=1)
    disbursed = supersede_memo(memo, MemoStatus.DISBURSED, later)
    assert disbursed.revision == 2
    assert disbursed.status == MemoStatus.DISBURSED
    assert disbursed.created_at == later
    assert memo.revision == 1
    assert memo.status == MemoStatus.APPROVED_PENDING_DISBURSEMENT


def test_supersede_accepts_status_value_string():
    cancelled = supersede_memo(_make_memo(), "cancelled", NOW)
    assert cancelled.status == MemoStatus.CANCELLED


@pytest.mark.parametrize("terminal", [MemoStatus.DISBURSED, MemoStatus.CANCELLED])
def test_terminal_status_cannot_change(terminal):
    done = supersede_memo(_make_memo(), terminal, NOW)
    with pytest.raises(InvalidStatusTransitionError):
        supersede_memo(done, MemoStatus.APPROVED_PENDING_DISBURSEMENT, NOW)
    with pytest.raises(InvalidStatusTransitionError):
        supersede_memo(done, MemoStatus.DISBURSED, NOW)


def test_pending_cannot_transition_to_itself():
    with pytest.raises(InvalidStatusTransitionError):
        supersede_memo(_make_memo(), MemoStatus.APPROVED_PENDING_DISBURSEMENT, NOW)


# ─── Record ──────────────────────────────────────────────────────

def test_record_shape():
    record = memo_to_record(_make_memo())
    assert record["applicationId"] == APP_ID
    assert record["revision"] == 1
    assert record["status"] == "approved-pending-disbursement"
    assert set(record) == {
        "applicationId", "revision", "timestamp", "applicantInfo", "loanDetails",
        "verification", "riskAssessment", "approvalInfo", "status",
    }
    assert record["timestamp"] == NOW.isoformat()


def test_record_amounts_rounded_to_cents():
    record = memo_to_record(_make_memo())
    loan = record["loanDetails"]
    assert loan["approvedAmount"] == 376696.0
    assert loan["interestRate"] == 0.15
    assert loan["processingFee"] == 5000.0
    assert loan["monthlyPayment"] == round(loan["monthlyPayment"], 2)
    assert 0 < loan["dsr"] <= 0.4


def test_record_restores_to_same_record():
    record = memo_to_record(_make_memo())
    assert memo_to_record(memo_from_record(record)) == record


def test_superseded_record_keeps_loan_details():
    memo = _make_memo()
    record = memo_to_record(supersede_memo(memo, MemoStatus.DISBURSED, NOW))
    assert record["revision"] == 2
    assert record["status"] == "disbursed"
    assert record["loanDetails"] == memo_to_record(memo)["loanDetails"]


# ─── Text ────────────────────────────────────────────────────────

def test_text_memo():
    text = format_memo_text(_make_memo())
    assert text.startswith("=== LOAN DISBURSEMENT MEMO ===")
    assert f"Application ID: {APP_ID}" in text
    assert "Approved Amount: KSh 376,696.00" in text
    assert "Interest Rate: 15.0%" in text
    assert "Biometric Confirmed: YES" in text
    assert "Risk Factors" not in text


def test_text_memo_currency_override():
    assert "Approved Amount: USD 376,696.00" in format_memo_text(_make_memo(), "USD")
