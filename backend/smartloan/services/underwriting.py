"""Underwriting Service — the impure sandwich around the pure underwriting core.

Invariants:
    - The only place that reads the clock (now) or draws randomness (application ids)
    - Policy is read from the PolicyStore once per call: one request sees one policy
    - A memo is built only after biometric AND terms confirmation
    - Memos are appended, never rewritten; status changes append revision + 1

Design Decisions:
    - Clock and id prefix injectable: tests pin the clock, production uses UTC now + SL{ts}{rand}
    - Rule fan-out executor optional and owned by the caller
    - Logging happens here with structured extras; core functions stay silent
"""

import logging
import secrets
from concurrent.futures import Executor
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Sequence

from smartloan.core.domain_types import ApplicationId, MemoStatus
from smartloan.core.errors import (
    ConfirmationRequiredError, ErrorContext, InvalidInputError, ResourceNotFoundError,
)
from smartloan.core.memo import build_memo, memo_from_record, memo_to_record, supersede_memo
from smartloan.core.offers import (
    LoanOffer, adjust_offer, generate_offer, generate_offer_options,
)
from smartloan.core.policy import LendingPolicy, PolicyStore
from smartloan.core.records import IdentityRecord, IncomeRecord
from smartloan.core.repository_protocols import MemoRepository
from smartloan.core.validation_engine import ApplicationVerdict, validate

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_application_id(now: datetime, prefix: str = "SL") -> ApplicationId:
    """{prefix}{yyyyMMddHHmmss}{4 random digits}."""
    return ApplicationId(f"{prefix}{now:%Y%m%d%H%M%S}{1000 + secrets.randbelow(9000)}")


class UnderwritingService:
    """Validate, price, adjust and accept loan applications."""

    def __init__(
        self,
        policies: PolicyStore,
        memos: MemoRepository | None = None,
        *,
        clock: Clock = utc_now,
        id_prefix: str = "SL",
        executor: Executor | None = None,
    ):
        self.policies = policies
        self.memos = memos
        self.clock = clock
        self.id_prefix = id_prefix
        self.executor = executor

    # ─── Validation & Offer ──────────────────────────────────────

    def validate(
        self,
        identity: IdentityRecord,
        incomes: Sequence[IncomeRecord],
        as_of: date | None = None,
    ) -> ApplicationVerdict:
        return self._validate(identity, incomes, as_of, self.policies.current)

    def offer(
        self,
        identity: IdentityRecord,
        incomes: Sequence[IncomeRecord],
        as_of: date | None = None,
        term_months: int | None = None,
    ) -> tuple[ApplicationVerdict, LoanOffer | None]:
        return self._offer(identity, incomes, as_of, self.policies.current, term_months)

    def offer_options(
        self,
        identity: IdentityRecord,
        incomes: Sequence[IncomeRecord],
        as_of: date | None = None,
    ) -> tuple[ApplicationVerdict, tuple[LoanOffer, ...]]:
        """Validate once, then price one offer per available loan term."""
        policy = self.policies.current
        verdict = self._validate(identity, incomes, as_of, policy)
        options = generate_offer_options(identity, incomes, verdict, policy, self.clock())
        logger.info(
            f"Generated {len(options)} offer options",
            extra={"eligible": verdict.eligible},
        )
        return verdict, options

    def adjust(self, offer: LoanOffer, new_amount: Decimal) -> LoanOffer | None:
        adjusted = adjust_offer(offer, new_amount, self.policies.current)
        if adjusted is None:
            logger.info(f"Adjustment to {new_amount} denied")
        return adjusted

    def _validate(
        self,
        identity: IdentityRecord,
        incomes: Sequence[IncomeRecord],
        as_of: date | None,
        policy: LendingPolicy,
    ) -> ApplicationVerdict:
        as_of = as_of or self.clock().date()
        verdict = validate(identity, incomes, policy, as_of, executor=self.executor)
        for outcome in verdict.failed:
            logger.info(
                f"Rule failed: {outcome.error_message}",
                extra={"rule_id": outcome.rule_id.value},
            )
        logger.info("Application validated", extra={"eligible": verdict.eligible})
        return verdict

    def _offer(
        self,
        identity: IdentityRecord,
        incomes: Sequence[IncomeRecord],
        as_of: date | None,
        policy: LendingPolicy,
        term_months: int | None = None,
    ) -> tuple[ApplicationVerdict, LoanOffer | None]:
        verdict = self._validate(identity, incomes, as_of, policy)
        offer = generate_offer(
            identity, incomes, verdict, policy, self.clock(), term_months,
        )
        if offer is None:
            logger.info("No offer: application not eligible", extra={"eligible": False})
        else:
            logger.info(
                f"Offer generated: recommended {offer.recommended_amount}, "
                f"max {offer.max_amount}",
                extra={"eligible": True},
            )
        return verdict, offer

    # ─── Acceptance & Memos ──────────────────────────────────────

    async def accept(
        self,
        identity: IdentityRecord,
        incomes: Sequence[IncomeRecord],
        *,
        biometric_confirmed: bool,
        terms_accepted: bool,
        accepted_amount: Decimal | None = None,
        as_of: date | None = None,
        term_months: int | None = None,
    ) -> dict[str, Any]:
        """Re-validate, re-price, build and persist the memo. Returns its record.

        Raises:
            ConfirmationRequiredError: biometric or terms confirmation missing.
            OfferUnavailableError: application is not eligible.
            InvalidInputError: accepted_amount is outside the offer's range.
        """
        missing = [
            name for name, given in (
                ("biometric_confirmed", biometric_confirmed),
                ("terms_accepted", terms_accepted),
            ) if not given
        ]
        if missing:
            raise ConfirmationRequiredError(missing)

        policy = self.policies.current
        now = self.clock()
        application_id = generate_application_id(now, self.id_prefix)
        verdict, offer = self._offer(identity, incomes, as_of, policy, term_months)

        if offer is not None and accepted_amount is not None:
            adjusted = adjust_offer(offer, accepted_amount, policy)
            if adjusted is None:
                raise InvalidInputError(
                    f"Accepted amount {accepted_amount} is outside the offered range "
                    f"[{offer.min_amount}, {offer.max_amount}] or exceeds the DSR limit",
                    "accepted_amount",
                    ErrorContext(application_id=application_id),
                )
            offer = adjusted

        memo = build_memo(
            application_id, identity, incomes, verdict, offer,
            biometric_confirmed, terms_accepted, now, policy,
        )
        record = memo_to_record(memo)
        await self._repository().append(record)
        logger.info(
            "Disbursement memo created",
            extra={
                "application_id": application_id,
                "risk_score": memo.risk.risk_score,
                "recommended_action": memo.risk.recommended_action.value,
                "revision": memo.revision,
            },
        )
        return record

    async def get_memo(self, application_id: ApplicationId) -> dict[str, Any]:
        record = await self._repository().latest(application_id)
        if record is None:
            raise ResourceNotFoundError("Disbursement memo", application_id)
        return record

    async def memo_history(self, application_id: ApplicationId) -> list[dict[str, Any]]:
        records = await self._repository().history(application_id)
        if not records:
            raise ResourceNotFoundError("Disbursement memo", application_id)
        return records

    async def change_status(
        self, application_id: ApplicationId, status: MemoStatus,
    ) -> dict[str, Any]:
        """Append a superseding memo with the new status."""
        current = memo_from_record(await self.get_memo(application_id))
        successor = supersede_memo(current, status, self.clock())
        record = memo_to_record(successor)
        await self._repository().append(record)
        logger.info(
            f"Memo status changed to {successor.status.value}",
            extra={"application_id": application_id, "revision": successor.revision},
        )
        return record

    def _repository(self) -> MemoRepository:
        if self.memos is None:
            raise RuntimeError("UnderwritingService has no memo repository")
        return self.memos
