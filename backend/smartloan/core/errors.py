"""Error Hierarchy — typed, categorized exceptions for every SmartLoan failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Business-rule failures are NOT errors: they are failing RuleOutcomes inside a verdict
    - Structural input errors (400) and policy configuration errors (500) never share a code,
      so a malformed policy is never reported to an applicant as a document problem
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SmartLoanError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - adjust() returning None is a denial signal, not an exception (no error class for it)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    application_id: str | None = None
    field_name: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class SmartLoanError(Exception):
    """Base exception for all SmartLoan errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "application_id": self.context.application_id,
                    "field": self.context.field_name,
                },
            }
        }


# ─── Structural Errors (engine cannot proceed) ──────────────────

class InvalidInputError(SmartLoanError):
    """Input is structurally unusable (empty income list, non-finite number, zero salary)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.field_name = field
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.field = field


class PolicyConfigurationError(SmartLoanError):
    """Lending policy is malformed — an operator problem, never an applicant problem."""
    def __init__(self, message: str, option: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.field_name = option
        ctx.user_message = (
            "Loan assessment is temporarily unavailable due to a configuration problem."
        )
        super().__init__(
            f"Invalid lending policy ({option}): {message}",
            "POLICY_CONFIGURATION", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.option = option


# ─── Business Errors (request cannot be honoured) ───────────────

class OfferUnavailableError(SmartLoanError):
    """A memo was requested for an application that has no live offer."""
    def __init__(self, application_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.application_id = application_id
        super().__init__(
            f"Application '{application_id}' has no loan offer and cannot be disbursed",
            "OFFER_UNAVAILABLE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 409,
        )


class ConfirmationRequiredError(SmartLoanError):
    """Acceptance attempted without biometric confirmation or terms acceptance."""
    def __init__(self, missing: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Acceptance requires confirmation: {', '.join(missing)}",
            "CONFIRMATION_REQUIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.missing = missing


class InvalidStatusTransitionError(SmartLoanError):
    """Memo status change not permitted from the current status."""
    def __init__(self, current: str, requested: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot move memo from '{current}' to '{requested}'",
            "INVALID_STATUS_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.requested = requested


class MemoConflictError(SmartLoanError):
    """A memo revision was written concurrently; the caller should re-read and retry."""
    def __init__(self, application_id: str, revision: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.application_id = application_id
        ctx.user_message = "This memo was changed by another request. Reload it and try again."
        super().__init__(
            f"Memo '{application_id}' revision {revision} already exists",
            "MEMO_CONFLICT", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.revision = revision


class ResourceNotFoundError(SmartLoanError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(SmartLoanError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
