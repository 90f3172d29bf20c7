"""Loan service - loan requests, approvals, disbursement and repayments."""

import structlog

from chama_ledger.application.dto import (
    LoanApplication,
    LoanResponse,
    RepaymentRequest,
    ReviewRequest,
)
from chama_ledger.core.config import settings
from chama_ledger.core.metrics import (
    record_inconsistency,
    record_loan_repayment,
    record_loan_transition,
)
from chama_ledger.domain.entities import Group
from chama_ledger.domain.exceptions import (
    InconsistentLedgerException,
    LoanNotFoundException,
    NotAuthorizedException,
)
from chama_ledger.domain.interfaces import LoanRepository, NotificationClient
from chama_ledger.service.ledger import (
    Loan,
    LoanStatus,
    PaymentInput,
    approve_loan,
    approve_repayment,
    check_loan_cache,
    disburse_loan,
    normalize_payment_method,
    reject_loan,
    reject_repayment,
    request_loan,
    submit_repayment,
)
from chama_ledger.service.ledger.dates import as_utc

from .member_ledger import Clock, MemberLedger, utcnow

logger = structlog.get_logger(__name__)


class LoanService:
    """
    Application service for loan use cases.
    """

    def __init__(
        self,
        loan_repository: LoanRepository,
        member_ledger: MemberLedger,
        notification_client: NotificationClient,
        clock: Clock = utcnow,
    ):
        self._loan_repo = loan_repository
        self._ledger = member_ledger
        self._notifier = notification_client
        self._clock = clock

    async def request_loan(self, group_id: str, application: LoanApplication) -> LoanResponse:
        """
        Submit a loan request on behalf of a member.

        Raises:
            MemberNotFoundException: If the borrower is not in the group
            StateTransitionException: If the group is closed or the borrower
                is awaiting approval
            ValidationException: If the request breaks the group's loan rules
        """
        group = await self._ledger.require_open_group(group_id)
        await self._ledger.require_active_member(group_id, application.borrower_id)

        existing = await self._loan_repo.list_by_borrower(group_id, application.borrower_id)
        now = self._clock()
        loan = request_loan(
            group_id=group_id,
            borrower_id=application.borrower_id,
            amount_cents=application.amount_cents,
            purpose=application.purpose,
            repayment_months=application.repayment_months,
            rules=group.rules,
            existing_loans=existing,
            now=now,
        )
        await self._loan_repo.save(loan)

        record_loan_transition(LoanStatus.PENDING.value)
        logger.info(
            "loan_requested",
            loan_id=loan.id,
            group_id=group_id,
            borrower_id=loan.borrower_id,
            amount_cents=loan.loan_amount_cents,
            repayment_months=loan.repayment_months,
        )
        await self._notifier.send_event("loan_requested", group_id, self._event_payload(loan))

        return LoanResponse.from_entity(loan, settings.currency)

    async def get_loan(self, loan_id: str) -> LoanResponse:
        """
        Raises:
            LoanNotFoundException: If the loan does not exist
            InconsistentLedgerException: If the cached amount repaid drifted
        """
        loan = await self._load(loan_id)
        try:
            check_loan_cache(loan)
        except InconsistentLedgerException as exc:
            logger.error(
                "ledger_inconsistency_detected",
                entity="loan",
                loan_id=loan_id,
                drift={k: list(v) for k, v in exc.drift.items()},
            )
            record_inconsistency("loan")
            raise
        return LoanResponse.from_entity(loan, settings.currency)

    async def approve_loan(self, loan_id: str, request: ReviewRequest) -> LoanResponse:
        """Approve a pending loan, fixing its interest (admin only)."""
        loan, group = await self._load_with_group(loan_id)
        await self._ledger.require_admin(group.id, request.actor_id, "approve loans")

        now = self._clock()
        updated = approve_loan(loan, request.actor_id, group.rules, now)
        return await self._save_transition(group, updated, "loan_approved", now)

    async def reject_loan(self, loan_id: str, request: ReviewRequest) -> LoanResponse:
        """Reject a pending loan with a reason (admin only)."""
        loan, group = await self._load_with_group(loan_id)
        await self._ledger.require_admin(group.id, request.actor_id, "reject loans")

        now = self._clock()
        updated = reject_loan(loan, request.actor_id, request.reason, now)
        return await self._save_transition(group, updated, "loan_rejected", now)

    async def disburse_loan(self, loan_id: str, request: ReviewRequest) -> LoanResponse:
        """Mark an approved loan as handed over to the borrower (admin only)."""
        loan, group = await self._load_with_group(loan_id)
        await self._ledger.require_admin(group.id, request.actor_id, "disburse loans")

        now = self._clock()
        updated = disburse_loan(loan, request.actor_id, now)
        return await self._save_transition(group, updated, "loan_disbursed", now)

    async def submit_repayment(self, loan_id: str, request: RepaymentRequest) -> LoanResponse:
        """
        Submit a repayment; only the borrower repays their own loan.

        Raises:
            NotAuthorizedException: If the actor is not the borrower
            StateTransitionException: If the loan is not active
            ValidationException: If the amount exceeds what remains
        """
        loan, group = await self._load_with_group(loan_id)
        await self._ledger.require_member(group.id, request.actor_id)
        if request.actor_id != loan.borrower_id:
            raise NotAuthorizedException(request.actor_id, "repay another member's loan")

        now = self._clock()
        payment = PaymentInput(
            amount_cents=request.amount_cents,
            method=normalize_payment_method(request.method),
            proof_url=request.proof_url,
            submitted_by=request.actor_id,
            payment_date=as_utc(request.payment_date) or now,
        )
        updated = submit_repayment(loan, payment, now, notes=request.notes)
        updated = await self._loan_repo.update(updated)
        await self._ledger.refresh_summary(group, loan.borrower_id, now)

        submitted = updated.payments[-1]
        record_loan_repayment("submitted")
        logger.info(
            "loan_payment_submitted",
            loan_id=loan_id,
            payment_id=submitted.id,
            amount_cents=submitted.amount_cents,
        )
        await self._notifier.send_event(
            "loan_payment_submitted", group.id, self._event_payload(updated, payment_id=submitted.id)
        )

        return LoanResponse.from_entity(updated, settings.currency)

    async def approve_repayment(self, loan_id: str, payment_id: str, request: ReviewRequest) -> LoanResponse:
        """
        Approve a repayment (admin only); may complete the loan.
        """
        loan, group = await self._load_with_group(loan_id)
        await self._ledger.require_admin(group.id, request.actor_id, "approve loan payments")

        now = self._clock()
        updated = approve_repayment(loan, payment_id, request.actor_id, group.rules, now)
        updated = await self._loan_repo.update(updated)
        await self._ledger.refresh_summary(group, loan.borrower_id, now)

        approved = updated.find_payment(payment_id)
        record_loan_repayment("approved")
        logger.info(
            "loan_payment_approved",
            loan_id=loan_id,
            payment_id=payment_id,
            penalty_cents=approved.penalty_cents,
            amount_remaining_cents=updated.amount_remaining_cents,
        )
        await self._notifier.send_event(
            "loan_payment_approved", group.id, self._event_payload(updated, payment_id=payment_id)
        )

        if updated.status == LoanStatus.REPAID and loan.status != LoanStatus.REPAID:
            record_loan_transition(LoanStatus.REPAID.value)
            logger.info("loan_repaid", loan_id=loan_id, borrower_id=loan.borrower_id)
            await self._notifier.send_event("loan_repaid", group.id, self._event_payload(updated))

        return LoanResponse.from_entity(updated, settings.currency)

    async def reject_repayment(self, loan_id: str, payment_id: str, request: ReviewRequest) -> LoanResponse:
        """Reject a repayment with a reason (admin only)."""
        loan, group = await self._load_with_group(loan_id)
        await self._ledger.require_admin(group.id, request.actor_id, "reject loan payments")

        now = self._clock()
        updated = reject_repayment(loan, payment_id, request.actor_id, request.reason, now)
        updated = await self._loan_repo.update(updated)
        await self._ledger.refresh_summary(group, loan.borrower_id, now)

        record_loan_repayment("rejected")
        logger.info(
            "loan_payment_rejected",
            loan_id=loan_id,
            payment_id=payment_id,
            reason=request.reason,
        )
        await self._notifier.send_event(
            "loan_payment_rejected", group.id, self._event_payload(updated, payment_id=payment_id)
        )

        return LoanResponse.from_entity(updated, settings.currency)

    async def _load(self, loan_id: str) -> Loan:
        loan = await self._loan_repo.get_by_id(loan_id)
        if loan is None:
            logger.warning("loan_not_found", loan_id=loan_id)
            raise LoanNotFoundException(loan_id)
        return loan

    async def _load_with_group(self, loan_id: str) -> tuple[Loan, Group]:
        loan = await self._load(loan_id)
        group = await self._ledger.require_group(loan.group_id)
        return loan, group

    async def _save_transition(self, group: Group, loan: Loan, event: str, now) -> LoanResponse:
        updated = await self._loan_repo.update(loan)
        await self._ledger.refresh_summary(group, loan.borrower_id, now)

        record_loan_transition(updated.status.value, updated.loan_amount_cents)
        logger.info(
            event,
            loan_id=updated.id,
            group_id=group.id,
            status=updated.status.value,
            total_repayable_cents=updated.total_repayable_cents,
        )
        await self._notifier.send_event(event, group.id, self._event_payload(updated))

        return LoanResponse.from_entity(updated, settings.currency)

    @staticmethod
    def _event_payload(loan: Loan, payment_id: str | None = None) -> dict:
        payload = {
            "loan_id": loan.id,
            "borrower_id": loan.borrower_id,
            "status": loan.status.value,
            "loan_amount_cents": loan.loan_amount_cents,
            "total_repayable_cents": loan.total_repayable_cents,
            "amount_remaining_cents": loan.amount_remaining_cents,
        }
        if payment_id is not None:
            payload["payment_id"] = payment_id
        return payload
