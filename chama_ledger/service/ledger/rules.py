"""
Group Rules normalization.

Groups created over the years stored their rules under several field names
(gracePeriod vs gracePeriodDays, loanPenalty.percentage vs rate, month3 vs
month3AndBeyond, and a handful of legacy fields on the group root). Amounts
arrived as numbers or as strings with thousands separators.

normalize_rules() is the single place that reads any of those shapes and
produces the canonical Rules model. Everything downstream works with Rules
only.

Accepted shapes:
    - Canonical: the output of Rules.to_dict() (snake_case, *_cents amounts)
    - Legacy: camelCase keys with major-unit amounts
      (seedMoney.amount, monthlyContribution.amount, loanRules.maxLoanAmount)
"""

import math
from typing import Any, Dict, List, Optional

from chama_ledger.domain.exceptions import ValidationException

from .dates import parse_datetime
from .models import (
    LoanInterestRule,
    LoanRules,
    MonthlyContributionRule,
    PaymentMethod,
    PaymentType,
    PenaltyRule,
    Rules,
    SeedMoneyRule,
)
from .money import parse_formatted_number, to_cents
from .settings import LedgerSettings, ledger_settings

# Upper bounds on rule values that size generated rows
MAX_CYCLE_MONTHS = 60
MAX_REPAYMENT_MONTHS = 60
MAX_GRACE_PERIOD_DAYS = 365


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present with a non-null value."""
    for key in keys:
        if key in data and data[key] is not None and data[key] != "":
            return data[key]
    return default


def _section(raw: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    value = _first(raw, *keys, default={})
    return value if isinstance(value, dict) else {}


class _Reader:
    """Collects conversion errors so one ValidationException lists them all."""

    def __init__(self) -> None:
        self.errors: List[str] = []

    def cents(self, section: Dict[str, Any], cents_key: str, *major_keys: str) -> int:
        if section.get(cents_key) is not None:
            return self.integer(section, cents_key, default=0)
        value = _first(section, *major_keys)
        if value is None:
            return 0
        if isinstance(value, float):
            # Legacy documents stored plain JSON numbers
            value = str(value)
        try:
            return to_cents(value)
        except ValidationException:
            self.errors.append(f"{major_keys[0]}: not a valid amount ({value!r})")
            return 0

    def number(self, value: Any, name: str, default: float = 0.0) -> float:
        if value is None:
            return default
        if isinstance(value, bool):
            self.errors.append(f"{name}: not a number ({value!r})")
            return default
        if isinstance(value, (int, float)):
            parsed = value
        else:
            parsed = parse_formatted_number(str(value))
            if parsed is None:
                self.errors.append(f"{name}: not a number ({value!r})")
                return default
        try:
            number = float(parsed)
        except OverflowError:
            number = math.inf
        if not math.isfinite(number):
            self.errors.append(f"{name}: not a finite number ({value!r})")
            return default
        return number

    def integer(self, section: Dict[str, Any], *keys: str, default: int = 0) -> int:
        value = _first(section, *keys)
        if value is None:
            return default
        number = self.number(value, keys[0], default=float(default))
        if number != int(number):
            self.errors.append(f"{keys[0]}: must be a whole number ({value!r})")
        return int(number)

    def boolean(self, section: Dict[str, Any], *keys: str, default: bool) -> bool:
        value = _first(section, *keys)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    def date(self, value: Any, name: str):
        if value is None:
            return None
        try:
            return parse_datetime(value)
        except (TypeError, ValueError):
            self.errors.append(f"{name}: not a valid date ({value!r})")
            return None


def _penalty(reader: _Reader, section: Dict[str, Any], name: str,
             fallback_rate: Any = None, fallback_grace: Any = None) -> PenaltyRule:
    rate = reader.number(
        _first(section, "rate", "percentage", default=fallback_rate),
        f"{name}.rate",
    )
    grace_key = f"{name}.grace_period_days"
    grace = reader.integer(
        {grace_key: _first(section, "grace_period_days", "gracePeriodDays", "gracePeriod",
                           default=fallback_grace)},
        grace_key,
    )
    return PenaltyRule(rate=rate, grace_period_days=grace)


def normalize_rules(
    raw: Optional[Dict[str, Any]],
    settings: LedgerSettings = ledger_settings,
) -> Rules:
    """
    Normalize a stored or submitted rules document into Rules.

    Group-root legacy fields (seedMoneyDueDate, monthlyDueDay, monthlyPenalty
    as a bare number, monthlyGracePeriod) are honoured only when the nested
    field is absent.

    Args:
        raw: Rules document in canonical or legacy form (None = all defaults)
        settings: Ledger settings (cycle length default)

    Returns:
        Canonical Rules

    Raises:
        ValidationException: Listing every invalid field
    """
    raw = raw or {}
    reader = _Reader()

    seed = _section(raw, "seed_money", "seedMoney")
    monthly = _section(raw, "monthly_contribution", "monthlyContribution")
    monthly_penalty_raw = _first(raw, "monthly_penalty", "monthlyPenalty")
    monthly_penalty = monthly_penalty_raw if isinstance(monthly_penalty_raw, dict) else {}
    loan_penalty = _section(raw, "loan_penalty", "loanPenalty")
    interest = _section(raw, "loan_interest", "loanInterest")
    loan_rules = _section(raw, "loan_rules", "loanRules")

    seed_penalty_rate = _first(seed, "penalty_rate", "penaltyRate", "latePenalty")
    seed_money = SeedMoneyRule(
        amount_cents=reader.cents(seed, "amount_cents", "amount"),
        due_date=reader.date(
            _first(seed, "due_date", "dueDate", default=_first(raw, "seedMoneyDueDate")),
            "seed_money.due_date",
        ),
        required=reader.boolean(seed, "required", default=True),
        allow_partial_payment=reader.boolean(
            seed, "allow_partial_payment", "allowPartialPayment", default=True
        ),
        penalty_rate=(
            None if seed_penalty_rate is None
            else reader.number(seed_penalty_rate, "seed_money.penalty_rate")
        ),
    )

    day_of_month = reader.integer(
        {"monthly_contribution.day_of_month": _first(
            monthly, "day_of_month", "dayOfMonth", default=_first(raw, "monthlyDueDay")
        )},
        "monthly_contribution.day_of_month",
        default=1,
    )
    monthly_contribution = MonthlyContributionRule(
        amount_cents=reader.cents(monthly, "amount_cents", "amount"),
        day_of_month=day_of_month,
        allow_partial_payment=reader.boolean(
            monthly, "allow_partial_payment", "allowPartialPayment", default=True
        ),
    )

    # A bare number on the root is the legacy monthly penalty rate
    legacy_rate = None if isinstance(monthly_penalty_raw, dict) else monthly_penalty_raw
    rules = Rules(
        seed_money=seed_money,
        monthly_contribution=monthly_contribution,
        monthly_penalty=_penalty(
            reader, monthly_penalty, "monthly_penalty",
            fallback_rate=legacy_rate,
            fallback_grace=_first(raw, "monthlyGracePeriod"),
        ),
        loan_penalty=_penalty(reader, loan_penalty, "loan_penalty"),
        loan_interest=LoanInterestRule(
            month1=reader.number(_first(interest, "month1"), "loan_interest.month1"),
            month2=reader.number(_first(interest, "month2"), "loan_interest.month2"),
            month3_and_beyond=reader.number(
                _first(interest, "month3_and_beyond", "month3AndBeyond", "month3"),
                "loan_interest.month3_and_beyond",
            ),
        ),
        loan_rules=LoanRules(
            min_loan_cents=reader.cents(loan_rules, "min_loan_cents", "minLoanAmount"),
            max_loan_cents=reader.cents(loan_rules, "max_loan_cents", "maxLoanAmount"),
            max_active_loans_per_member=reader.integer(
                loan_rules, "max_active_loans_per_member", "maxActiveLoansPerMember", default=1
            ),
            min_repayment_months=reader.integer(
                loan_rules, "min_repayment_months", "minRepaymentPeriod", default=1
            ),
            max_repayment_months=reader.integer(
                loan_rules, "max_repayment_months", "maxRepaymentPeriod", default=3
            ),
        ),
        cycle_months=reader.integer(
            raw, "cycle_months", "cycleMonths", default=settings.default_cycle_months
        ),
    )

    errors = reader.errors + validate_rules(rules)
    if errors:
        raise ValidationException(errors)

    return rules


def validate_rules(rules: Rules) -> List[str]:
    """Return the list of range violations in a Rules instance (empty when valid)."""
    errors = []

    if rules.seed_money.amount_cents < 0:
        errors.append("seed_money.amount must not be negative")
    if rules.monthly_contribution.amount_cents < 0:
        errors.append("monthly_contribution.amount must not be negative")
    if not 1 <= rules.monthly_contribution.day_of_month <= 31:
        errors.append("monthly_contribution.day_of_month must be between 1 and 31")

    rates = {
        "monthly_penalty.rate": rules.monthly_penalty.rate,
        "loan_penalty.rate": rules.loan_penalty.rate,
        "loan_interest.month1": rules.loan_interest.month1,
        "loan_interest.month2": rules.loan_interest.month2,
        "loan_interest.month3_and_beyond": rules.loan_interest.month3_and_beyond,
    }
    if rules.seed_money.penalty_rate is not None:
        rates["seed_money.penalty_rate"] = rules.seed_money.penalty_rate
    for name, rate in rates.items():
        if not 0 <= rate <= 100:
            errors.append(f"{name} must be between 0 and 100")

    for name, penalty in (("monthly_penalty", rules.monthly_penalty),
                          ("loan_penalty", rules.loan_penalty)):
        if penalty.grace_period_days < 0:
            errors.append(f"{name}.grace_period_days must not be negative")
        elif penalty.grace_period_days > MAX_GRACE_PERIOD_DAYS:
            errors.append(f"{name}.grace_period_days must be at most {MAX_GRACE_PERIOD_DAYS}")

    loan_rules = rules.loan_rules
    if loan_rules.min_loan_cents < 0 or loan_rules.max_loan_cents < 0:
        errors.append("loan_rules amounts must not be negative")
    if loan_rules.max_loan_cents and loan_rules.min_loan_cents > loan_rules.max_loan_cents:
        errors.append("loan_rules.min_loan must not exceed max_loan")
    if loan_rules.min_repayment_months < 1:
        errors.append("loan_rules.min_repayment_months must be at least 1")
    if loan_rules.max_repayment_months > MAX_REPAYMENT_MONTHS:
        errors.append(f"loan_rules.max_repayment_months must be at most {MAX_REPAYMENT_MONTHS}")
    if loan_rules.min_repayment_months > loan_rules.max_repayment_months:
        errors.append("loan_rules.min_repayment_months must not exceed max_repayment_months")
    if loan_rules.max_active_loans_per_member < 1:
        errors.append("loan_rules.max_active_loans_per_member must be at least 1")

    if not 1 <= rules.cycle_months <= MAX_CYCLE_MONTHS:
        errors.append(f"cycle_months must be between 1 and {MAX_CYCLE_MONTHS}")

    return errors


def penalty_rule_for(rules: Rules, payment_type: PaymentType) -> PenaltyRule:
    """
    Return the late-penalty rule that applies to a payment record type.

    Seed money uses its dedicated rate when one is configured and otherwise
    falls back to the monthly contribution penalty. The grace period always
    comes from the monthly penalty rule.
    """
    if payment_type == PaymentType.SEED_MONEY and rules.seed_money.penalty_rate is not None:
        return PenaltyRule(
            rate=rules.seed_money.penalty_rate,
            grace_period_days=rules.monthly_penalty.grace_period_days,
        )
    return rules.monthly_penalty


def expected_amount_for(rules: Rules, payment_type: PaymentType) -> int:
    """Amount a member owes for one record of the given type."""
    if payment_type == PaymentType.SEED_MONEY:
        return rules.seed_money.amount_cents
    return rules.monthly_contribution.amount_cents


def normalize_payment_method(value: Optional[str]) -> Optional[PaymentMethod]:
    """
    Map a free-text payment method onto PaymentMethod.

    Matching ignores case, spaces, hyphens and underscores ("mobile_money",
    "Mobile Money"). Unrecognised methods become OTHER; a missing value
    stays None so that validation can reject it.
    """
    if value is None or not str(value).strip():
        return None

    def key(text: str) -> str:
        return "".join(ch for ch in text.lower() if ch.isalnum())

    wanted = key(str(value))
    for method in PaymentMethod:
        if key(method.value) == wanted or key(method.name) == wanted:
            return method
    return PaymentMethod.OTHER
