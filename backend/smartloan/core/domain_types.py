"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ApplicationId wraps str — never use a bare str for application identity in domain logic
    - RuleId is the closed set of rule kinds; adding a rule means adding a member here
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (memo export is JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ApplicationId = NewType("ApplicationId", str)


# ─── Enums ───────────────────────────────────────────────────────

class RuleId(str, Enum):
    """Closed set of business rule kinds evaluated by the validation engine."""
    PAYSLIP_RECENCY = "payslip_recency"
    PAYSLIP_COUNT = "payslip_count"
    NAME_CONSISTENCY = "name_consistency"
    RETIREMENT_AGE = "retirement_age"
    DATA_QUALITY = "data_quality"
    MINIMUM_SALARY = "minimum_salary"
    DOCUMENT_CONSISTENCY = "document_consistency"


class RecommendedAction(str, Enum):
    """Risk-driven recommendation attached to every disbursement memo."""
    APPROVE_STANDARD = "approve-standard"
    APPROVE_WITH_MONITORING = "approve-with-monitoring"
    MANUAL_REVIEW_REQUIRED = "manual-review-required"


class MemoStatus(str, Enum):
    """Disbursement memo lifecycle — changes are new memos, never edits."""
    APPROVED_PENDING_DISBURSEMENT = "approved-pending-disbursement"
    DISBURSED = "disbursed"
    CANCELLED = "cancelled"


# pending -> disbursed | cancelled; terminal states have no exits
MEMO_STATUS_TRANSITIONS: dict[MemoStatus, frozenset[MemoStatus]] = {
    MemoStatus.APPROVED_PENDING_DISBURSEMENT: frozenset(
        {MemoStatus.DISBURSED, MemoStatus.CANCELLED},
    ),
    MemoStatus.DISBURSED: frozenset(),
    MemoStatus.CANCELLED: frozenset(),
}

MAX_PAYSLIPS_PER_APPLICATION = 4
