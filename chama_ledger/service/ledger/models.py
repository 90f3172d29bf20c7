"""
Data models for the contribution and loan ledger.

These are plain snapshots: the calculation functions never mutate them and
always return new instances (dataclasses.replace). Money is integer cents,
rates are percentages.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from .dates import as_utc, isoformat, parse_datetime


def new_id() -> str:
    return str(uuid4())


# =============================================================================
# Enumerations
# =============================================================================

class PaymentType(str, Enum):
    """Kind of contribution obligation."""
    SEED_MONEY = "SeedMoney"
    MONTHLY_CONTRIBUTION = "MonthlyContribution"


class ApprovalStatus(str, Enum):
    """Approval state of a payment entry or, derived, of a whole record."""
    UNPAID = "unpaid"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    """Completion state of a payment record."""
    PENDING = "Pending"
    COMPLETED = "Completed"


class LoanStatus(str, Enum):
    """Lifecycle of a loan. REJECTED and REPAID are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    REPAID = "repaid"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: str) -> "LoanStatus":
        """Parse a stored status, accepting the legacy aliases."""
        aliases = {"disbursed": cls.ACTIVE, "completed": cls.REPAID}
        lowered = str(value).strip().lower()
        if lowered in aliases:
            return aliases[lowered]
        return cls(lowered)

    @property
    def is_terminal(self) -> bool:
        return self in (LoanStatus.REPAID, LoanStatus.REJECTED)


class LoanPaymentStatus(str, Enum):
    """Approval state of a single loan repayment."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    """How money reached the group."""
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    MOBILE_MONEY = "Mobile Money"
    PAYPAL = "PayPal"
    CRYPTO = "Crypto"
    OTHER = "Other"


class Classification(str, Enum):
    """Per-member classification used in period reports."""
    FULLY_PAID = "fully_paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


# =============================================================================
# Group Rules
# =============================================================================

@dataclass(frozen=True)
class SeedMoneyRule:
    """
    One-time joining contribution.

    Attributes:
        amount_cents: Amount every member owes
        due_date: When seed money is due (None = flexible, never overdue)
        required: Whether a seed money record is created for each member
        allow_partial_payment: Whether installments are accepted
        penalty_rate: Dedicated late penalty (%). None falls back to the
            monthly contribution penalty rule.
    """
    amount_cents: int = 0
    due_date: Optional[datetime] = None
    required: bool = True
    allow_partial_payment: bool = True
    penalty_rate: Optional[float] = None


@dataclass(frozen=True)
class MonthlyContributionRule:
    """Recurring monthly savings obligation."""
    amount_cents: int = 0
    day_of_month: int = 1
    allow_partial_payment: bool = True


@dataclass(frozen=True)
class PenaltyRule:
    """Late penalty: rate (%) applied once the grace period has elapsed."""
    rate: float = 0.0
    grace_period_days: int = 0


@dataclass(frozen=True)
class LoanInterestRule:
    """
    Interest rates (%) by elapsed-month bucket since disbursement.

    Month 1 uses month1, month 2 uses month2 and every later month uses
    month3_and_beyond. Each rate is charged once on the principal still
    outstanding at the start of that month.
    """
    month1: float = 0.0
    month2: float = 0.0
    month3_and_beyond: float = 0.0

    def rate_for_month(self, month_index: int) -> float:
        if month_index <= 1:
            return self.month1
        if month_index == 2:
            return self.month2
        return self.month3_and_beyond


@dataclass(frozen=True)
class LoanRules:
    """Eligibility limits for loan requests (0 max = unlimited)."""
    min_loan_cents: int = 0
    max_loan_cents: int = 0
    max_active_loans_per_member: int = 1
    min_repayment_months: int = 1
    max_repayment_months: int = 3


@dataclass(frozen=True)
class Rules:
    """The complete rule set of one savings group."""
    seed_money: SeedMoneyRule = field(default_factory=SeedMoneyRule)
    monthly_contribution: MonthlyContributionRule = field(default_factory=MonthlyContributionRule)
    monthly_penalty: PenaltyRule = field(default_factory=PenaltyRule)
    loan_penalty: PenaltyRule = field(default_factory=PenaltyRule)
    loan_interest: LoanInterestRule = field(default_factory=LoanInterestRule)
    loan_rules: LoanRules = field(default_factory=LoanRules)
    cycle_months: int = 12

    def to_dict(self) -> dict:
        """Canonical storage form (read back with rules.normalize_rules)."""
        return {
            "seed_money": {
                "amount_cents": self.seed_money.amount_cents,
                "due_date": isoformat(self.seed_money.due_date),
                "required": self.seed_money.required,
                "allow_partial_payment": self.seed_money.allow_partial_payment,
                "penalty_rate": self.seed_money.penalty_rate,
            },
            "monthly_contribution": {
                "amount_cents": self.monthly_contribution.amount_cents,
                "day_of_month": self.monthly_contribution.day_of_month,
                "allow_partial_payment": self.monthly_contribution.allow_partial_payment,
            },
            "monthly_penalty": {
                "rate": self.monthly_penalty.rate,
                "grace_period_days": self.monthly_penalty.grace_period_days,
            },
            "loan_penalty": {
                "rate": self.loan_penalty.rate,
                "grace_period_days": self.loan_penalty.grace_period_days,
            },
            "loan_interest": {
                "month1": self.loan_interest.month1,
                "month2": self.loan_interest.month2,
                "month3_and_beyond": self.loan_interest.month3_and_beyond,
            },
            "loan_rules": {
                "min_loan_cents": self.loan_rules.min_loan_cents,
                "max_loan_cents": self.loan_rules.max_loan_cents,
                "max_active_loans_per_member": self.loan_rules.max_active_loans_per_member,
                "min_repayment_months": self.loan_rules.min_repayment_months,
                "max_repayment_months": self.loan_rules.max_repayment_months,
            },
            "cycle_months": self.cycle_months,
        }


# =============================================================================
# Contributions
# =============================================================================

@dataclass(frozen=True)
class PaymentEntry:
    """
    One payment made against a payment record.

    Rejected entries stay on the record for audit but never count as paid.
    """
    amount_cents: int
    payment_date: datetime
    method: PaymentMethod
    proof_url: str
    submitted_by: str
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    approved_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    id: str = field(default_factory=new_id)

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount_cents": self.amount_cents,
            "payment_date": isoformat(self.payment_date),
            "method": self.method.value,
            "proof_url": self.proof_url,
            "submitted_by": self.submitted_by,
            "approval_status": self.approval_status.value,
            "approved_by": self.approved_by,
            "reviewed_at": isoformat(self.reviewed_at),
            "rejection_reason": self.rejection_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentEntry":
        return cls(
            id=data["id"],
            amount_cents=int(data["amount_cents"]),
            payment_date=parse_datetime(data["payment_date"]),
            method=PaymentMethod(data["method"]),
            proof_url=data.get("proof_url", ""),
            submitted_by=data.get("submitted_by", ""),
            approval_status=ApprovalStatus(data["approval_status"]),
            approved_by=data.get("approved_by"),
            reviewed_at=parse_datetime(data.get("reviewed_at")),
            rejection_reason=data.get("rejection_reason"),
        )


@dataclass(frozen=True)
class PaymentRecord:
    """
    One obligation (seed money or a monthly contribution) of one member.

    The entries tuple is the source of truth. amount_paid_cents, arrears_cents,
    penalty_cents, surplus_cents, approval_status and payment_status are a
    cache refreshed by payments.recompute_record.
    """
    group_id: str
    member_id: str
    payment_type: PaymentType
    year: int
    total_amount_cents: int
    month: Optional[str] = None
    due_date: Optional[datetime] = None
    entries: Tuple[PaymentEntry, ...] = ()
    amount_paid_cents: int = 0
    arrears_cents: int = 0
    penalty_cents: int = 0
    surplus_cents: int = 0
    approval_status: ApprovalStatus = ApprovalStatus.UNPAID
    payment_status: PaymentStatus = PaymentStatus.PENDING
    id: str = field(default_factory=new_id)
    version: int = 0

    @property
    def period_key(self) -> str:
        if self.payment_type == PaymentType.SEED_MONEY:
            return f"{self.year}_SeedMoney"
        return f"{self.year}_{self.month}"

    @property
    def display_status(self) -> str:
        """Completed, Pending, or Unpaid when no approved money has arrived yet."""
        if self.payment_status == PaymentStatus.COMPLETED:
            return PaymentStatus.COMPLETED.value
        if self.amount_paid_cents == 0:
            return "Unpaid"
        return PaymentStatus.PENDING.value

    def find_entry(self, entry_id: str) -> Optional[PaymentEntry]:
        return next((e for e in self.entries if e.id == entry_id), None)


@dataclass(frozen=True)
class ArrearsResult:
    """
    Derived position of a payment record at a given instant.

    Attributes:
        paid_so_far_cents: Sum of approved entries
        base_arrears_cents: max(total - paid, 0), penalty excluded
        penalty_cents: Late penalty accrued (0 until the grace period ends)
        total_due_cents: max(total + penalty - paid, 0), the record's arrears
        surplus_cents: max(paid - total - penalty, 0)
        status: Completed iff nothing is due
        is_overdue: Whether the penalty deadline has passed
    """
    paid_so_far_cents: int
    base_arrears_cents: int
    penalty_cents: int
    total_due_cents: int
    surplus_cents: int
    status: PaymentStatus
    is_overdue: bool

    @property
    def arrears_cents(self) -> int:
        return self.total_due_cents

    def to_dict(self) -> dict:
        return {
            "paid_so_far_cents": self.paid_so_far_cents,
            "base_arrears_cents": self.base_arrears_cents,
            "penalty_cents": self.penalty_cents,
            "total_due_cents": self.total_due_cents,
            "arrears_cents": self.arrears_cents,
            "surplus_cents": self.surplus_cents,
            "status": self.status.value,
            "is_overdue": self.is_overdue,
        }


@dataclass(frozen=True)
class PaymentInput:
    """An incoming payment, before it becomes an entry."""
    amount_cents: int
    method: Optional[PaymentMethod]
    proof_url: Optional[str]
    submitted_by: str
    payment_date: datetime

    def validate(self, now: Optional[datetime] = None) -> List[str]:
        errors = []

        if self.amount_cents <= 0:
            errors.append("amount must be positive")

        # The payment date decides lateness, so it cannot run ahead of the clock
        if now is not None and as_utc(self.payment_date) > as_utc(now):
            errors.append("payment date must not be in the future")

        if self.method is None:
            errors.append("payment method is required")

        if not self.proof_url or not self.proof_url.strip():
            errors.append("proof of payment is required")

        if not self.submitted_by or not self.submitted_by.strip():
            errors.append("submitter is required")

        return errors


# =============================================================================
# Loans
# =============================================================================

@dataclass(frozen=True)
class LoanInstallment:
    """One month of a loan's repayment schedule."""
    month_index: int
    principal_cents: int
    interest_cents: int
    due_date: Optional[datetime] = None
    paid: bool = False

    @property
    def amount_cents(self) -> int:
        return self.principal_cents + self.interest_cents

    def to_dict(self) -> dict:
        return {
            "month_index": self.month_index,
            "principal_cents": self.principal_cents,
            "interest_cents": self.interest_cents,
            "amount_cents": self.amount_cents,
            "due_date": isoformat(self.due_date),
            "paid": self.paid,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoanInstallment":
        return cls(
            month_index=int(data["month_index"]),
            principal_cents=int(data["principal_cents"]),
            interest_cents=int(data["interest_cents"]),
            due_date=parse_datetime(data.get("due_date")),
            paid=bool(data.get("paid", False)),
        )


@dataclass(frozen=True)
class LoanPayment:
    """
    A repayment submitted against a loan.

    penalty_cents is a late-payment surcharge attached to this payment on
    approval; it never changes the loan's total_repayable_cents.
    """
    amount_cents: int
    payment_date: datetime
    submitted_at: datetime
    submitted_by: str
    proof_url: str
    method: PaymentMethod = PaymentMethod.OTHER
    status: LoanPaymentStatus = LoanPaymentStatus.PENDING
    approved_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    penalty_cents: int = 0
    rejection_reason: Optional[str] = None
    notes: str = ""
    id: str = field(default_factory=new_id)

    @property
    def is_approved(self) -> bool:
        return self.status == LoanPaymentStatus.APPROVED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount_cents": self.amount_cents,
            "payment_date": isoformat(self.payment_date),
            "submitted_at": isoformat(self.submitted_at),
            "submitted_by": self.submitted_by,
            "proof_url": self.proof_url,
            "method": self.method.value,
            "status": self.status.value,
            "approved_by": self.approved_by,
            "reviewed_at": isoformat(self.reviewed_at),
            "penalty_cents": self.penalty_cents,
            "rejection_reason": self.rejection_reason,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoanPayment":
        return cls(
            id=data["id"],
            amount_cents=int(data["amount_cents"]),
            payment_date=parse_datetime(data["payment_date"]),
            submitted_at=parse_datetime(data["submitted_at"]),
            submitted_by=data.get("submitted_by", ""),
            proof_url=data.get("proof_url", ""),
            method=PaymentMethod(data.get("method", PaymentMethod.OTHER.value)),
            status=LoanPaymentStatus(data["status"]),
            approved_by=data.get("approved_by"),
            reviewed_at=parse_datetime(data.get("reviewed_at")),
            penalty_cents=int(data.get("penalty_cents", 0)),
            rejection_reason=data.get("rejection_reason"),
            notes=data.get("notes", ""),
        )


@dataclass(frozen=True)
class Loan:
    """
    A credit extended to a member.

    total_interest_cents and total_repayable_cents are fixed at approval and
    never change afterwards. Before approval total_repayable_cents equals the
    principal. amount_repaid_cents is a cache of the approved payments.
    """
    group_id: str
    borrower_id: str
    loan_amount_cents: int
    requested_at: datetime
    purpose: str = ""
    repayment_months: int = 3
    status: LoanStatus = LoanStatus.PENDING
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    disbursed_at: Optional[datetime] = None
    disbursed_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    total_interest_cents: int = 0
    total_repayable_cents: int = 0
    schedule: Tuple[LoanInstallment, ...] = ()
    payments: Tuple[LoanPayment, ...] = ()
    amount_repaid_cents: int = 0
    id: str = field(default_factory=new_id)
    version: int = 0

    @property
    def amount_remaining_cents(self) -> int:
        return max(self.total_repayable_cents - self.amount_repaid_cents, 0)

    def find_payment(self, payment_id: str) -> Optional[LoanPayment]:
        return next((p for p in self.payments if p.id == payment_id), None)


@dataclass(frozen=True)
class LoanBalance:
    """Derived repayment position of a loan."""
    amount_repaid_cents: int
    amount_remaining_cents: int
    pending_cents: int
    penalties_cents: int
    progress_percent: float

    def to_dict(self) -> dict:
        return {
            "amount_repaid_cents": self.amount_repaid_cents,
            "amount_remaining_cents": self.amount_remaining_cents,
            "pending_cents": self.pending_cents,
            "penalties_cents": self.penalties_cents,
            "progress_percent": self.progress_percent,
        }


# =============================================================================
# Aggregates
# =============================================================================

@dataclass(frozen=True)
class MemberFinancialSummary:
    """
    Cached per-member totals. Always re-derivable from records and loans.

    Attributes:
        total_paid_cents: Approved contribution money received
        total_arrears_cents: Contribution money still owed, penalties included
        total_pending_cents: Contribution money awaiting admin approval
        total_loans_cents: Principal of approved, active and repaid loans
        total_loans_paid_cents: Approved loan repayments
        total_penalties_cents: Contribution penalties plus loan payment penalties
    """
    total_paid_cents: int = 0
    total_arrears_cents: int = 0
    total_pending_cents: int = 0
    total_loans_cents: int = 0
    total_loans_paid_cents: int = 0
    total_penalties_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "total_paid_cents": self.total_paid_cents,
            "total_arrears_cents": self.total_arrears_cents,
            "total_pending_cents": self.total_pending_cents,
            "total_loans_cents": self.total_loans_cents,
            "total_loans_paid_cents": self.total_loans_paid_cents,
            "total_penalties_cents": self.total_penalties_cents,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MemberFinancialSummary":
        data = data or {}
        return cls(**{name: int(data.get(name, 0)) for name in cls().to_dict()})


@dataclass(frozen=True)
class MemberPeriodSummary:
    """One member's position for a reporting period."""
    member_id: str
    expected_cents: int
    paid_cents: int
    pending_cents: int
    arrears_cents: int
    penalty_cents: int
    percentage_paid: float
    classification: Classification


@dataclass(frozen=True)
class PeriodSummary:
    """
    Group totals for one reporting period.

    collection_rate can exceed 100 when members overpay; it is reported as
    computed and never clamped.
    """
    total_expected_cents: int
    total_collected_cents: int
    total_pending_approval_cents: int
    total_outstanding_cents: int
    total_penalties_cents: int
    collection_rate: float
    compliance_rate: float
    fully_paid: int
    partial: int
    unpaid: int
    members: List[MemberPeriodSummary] = field(default_factory=list)


@dataclass(frozen=True)
class LoanPortfolioSummary:
    """Group-wide loan totals for the admin dashboard."""
    pending_count: int
    active_count: int
    repaid_count: int
    rejected_count: int
    total_disbursed_cents: int
    total_outstanding_cents: int
    total_repaid_cents: int
    total_interest_cents: int
    total_penalties_cents: int
