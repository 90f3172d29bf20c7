"""Payment service - contribution payments and their review."""

from typing import List, Optional

import structlog

from chama_ledger.application.dto import (
    PaymentRecordResponse,
    ReviewRequest,
    SubmitPaymentRequest,
)
from chama_ledger.core.config import settings
from chama_ledger.core.metrics import (
    record_inconsistency,
    record_payment_entry,
    record_payment_review,
)
from chama_ledger.domain.entities import Group
from chama_ledger.domain.exceptions import (
    InconsistentLedgerException,
    NotAuthorizedException,
    PaymentRecordNotFoundException,
)
from chama_ledger.domain.interfaces import NotificationClient, PaymentRecordRepository
from chama_ledger.service.ledger import (
    PaymentInput,
    PaymentRecord,
    PaymentType,
    apply_payment,
    approve_entry,
    check_record_cache,
    compute_arrears,
    normalize_payment_method,
    reject_entry,
    validate_period,
)
from chama_ledger.service.ledger.dates import as_utc

from .member_ledger import Clock, MemberLedger, utcnow

logger = structlog.get_logger(__name__)


class PaymentService:
    """
    Application service for contribution payment use cases.

    Every write follows the same steps: load the record, apply the change in
    the calculation core, write it back under the record's version, refresh
    the member's cached summary and notify.
    """

    def __init__(
        self,
        record_repository: PaymentRecordRepository,
        member_ledger: MemberLedger,
        notification_client: NotificationClient,
        clock: Clock = utcnow,
    ):
        self._record_repo = record_repository
        self._ledger = member_ledger
        self._notifier = notification_client
        self._clock = clock

    async def list_records(
        self,
        group_id: str,
        member_id: Optional[str] = None,
        year: Optional[int] = None,
        payment_type: Optional[PaymentType] = None,
    ) -> List[PaymentRecordResponse]:
        group = await self._ledger.require_group(group_id)
        records = await self._record_repo.list(
            group_id, member_id=member_id, year=year, payment_type=payment_type
        )
        now = self._clock()
        return [self._to_response(record, group, now) for record in records]

    async def get_record(self, record_id: str) -> PaymentRecordResponse:
        """
        Retrieve a record with its position computed at request time.

        Raises:
            PaymentRecordNotFoundException: If the record does not exist
            InconsistentLedgerException: If the cached amount paid drifted
        """
        record, group = await self._load(record_id)
        self._verify(record)
        return self._to_response(record, group, self._clock())

    async def submit_payment(self, record_id: str, request: SubmitPaymentRequest) -> PaymentRecordResponse:
        """
        Pay into a record.

        Members pay into their own records and wait for approval. Admins may
        pay on anyone's behalf with admin_entered set, which approves the
        entry immediately.

        Raises:
            ValidationException: If the payment is invalid
            NotAuthorizedException: If a member pays into someone else's record
                or a non-admin sets admin_entered
            StateTransitionException: If the group is closed
            ConcurrentModificationException: If the record changed meanwhile
        """
        record, group = await self._load(record_id)
        group = await self._ledger.require_open_group(group.id)
        validate_period(record, group.rules, group.cycle_start)

        if request.admin_entered:
            await self._ledger.require_admin(group.id, request.actor_id, "record payments for members")
        else:
            await self._ledger.require_active_member(group.id, request.actor_id)
            if request.actor_id != record.member_id:
                raise NotAuthorizedException(request.actor_id, "pay into another member's record")

        now = self._clock()
        payment = PaymentInput(
            amount_cents=request.amount_cents,
            method=normalize_payment_method(request.method),
            proof_url=request.proof_url,
            submitted_by=request.actor_id,
            payment_date=as_utc(request.payment_date) or now,
        )

        log = logger.bind(
            record_id=record_id,
            member_id=record.member_id,
            period=record.period_key,
            amount_cents=request.amount_cents,
        )

        updated = apply_payment(record, payment, group.rules, now, admin_entered=request.admin_entered)
        updated = await self._record_repo.update(updated)
        await self._ledger.refresh_summary(group, record.member_id, now)

        record_payment_entry(record.payment_type.value, request.admin_entered)
        entry = updated.entries[-1]
        log.info(
            "payment_recorded",
            entry_id=entry.id,
            approval_status=entry.approval_status.value,
            admin_entered=request.admin_entered,
        )

        event = "payment_approved" if request.admin_entered else "payment_submitted"
        await self._notifier.send_event(event, group.id, self._event_payload(updated, entry))

        return self._to_response(updated, group, now)

    async def approve_entry(self, record_id: str, entry_id: str, request: ReviewRequest) -> PaymentRecordResponse:
        """
        Approve a pending payment entry (admin only).

        Raises:
            PaymentEntryNotFoundException: If the entry is not on the record
            StateTransitionException: If the entry was already reviewed
        """
        record, group = await self._load(record_id)
        await self._ledger.require_admin(group.id, request.actor_id, "approve payments")

        now = self._clock()
        updated = approve_entry(record, entry_id, request.actor_id, group.rules, now)
        updated = await self._record_repo.update(updated)
        await self._ledger.refresh_summary(group, record.member_id, now)

        entry = updated.find_entry(entry_id)
        record_payment_review(True, record.payment_type.value, entry.amount_cents)
        logger.info(
            "payment_approved",
            record_id=record_id,
            entry_id=entry_id,
            actor_id=request.actor_id,
            payment_status=updated.payment_status.value,
        )

        await self._notifier.send_event("payment_approved", group.id, self._event_payload(updated, entry))

        return self._to_response(updated, group, now)

    async def reject_entry(self, record_id: str, entry_id: str, request: ReviewRequest) -> PaymentRecordResponse:
        """
        Reject a pending payment entry (admin only). A reason is required.
        """
        record, group = await self._load(record_id)
        await self._ledger.require_admin(group.id, request.actor_id, "reject payments")

        now = self._clock()
        updated = reject_entry(record, entry_id, request.actor_id, request.reason, group.rules, now)
        updated = await self._record_repo.update(updated)
        await self._ledger.refresh_summary(group, record.member_id, now)

        entry = updated.find_entry(entry_id)
        record_payment_review(False, record.payment_type.value, entry.amount_cents)
        logger.info(
            "payment_rejected",
            record_id=record_id,
            entry_id=entry_id,
            actor_id=request.actor_id,
            reason=request.reason,
        )

        await self._notifier.send_event("payment_rejected", group.id, self._event_payload(updated, entry))

        return self._to_response(updated, group, now)

    async def _load(self, record_id: str) -> tuple[PaymentRecord, Group]:
        record = await self._record_repo.get_by_id(record_id)
        if record is None:
            logger.warning("payment_record_not_found", record_id=record_id)
            raise PaymentRecordNotFoundException(record_id)
        group = await self._ledger.require_group(record.group_id)
        return record, group

    def _verify(self, record: PaymentRecord) -> None:
        try:
            check_record_cache(record)
        except InconsistentLedgerException as exc:
            logger.error(
                "ledger_inconsistency_detected",
                entity="payment_record",
                record_id=record.id,
                drift={k: list(v) for k, v in exc.drift.items()},
            )
            record_inconsistency("payment_record")
            raise

    @staticmethod
    def _to_response(record: PaymentRecord, group: Group, now) -> PaymentRecordResponse:
        arrears = compute_arrears(record, group.rules, now)
        return PaymentRecordResponse.from_entity(record, arrears, settings.currency)

    @staticmethod
    def _event_payload(record: PaymentRecord, entry) -> dict:
        return {
            "record_id": record.id,
            "member_id": record.member_id,
            "period": record.period_key,
            "entry_id": entry.id,
            "amount_cents": entry.amount_cents,
            "arrears_cents": record.arrears_cents,
            "payment_status": record.payment_status.value,
        }
