"""Prometheus metrics for the Chama Ledger service.

Metrics are organized into two categories:

Business Metrics (for group treasurers):
- chama_payment_entries_total: Payment entries recorded by type and source
- chama_payment_reviews_total: Payment entry reviews by outcome
- chama_payment_amount_cents_total: Approved contribution money by type
- chama_loan_transitions_total: Loan status changes by target status
- chama_loan_disbursed_cents_total: Principal handed out

Technical Metrics (for Engineering/SRE):
- chama_ledger_inconsistencies_total: Cache drift detected on recompute
- chama_concurrent_conflicts_total: Writes rejected by the version check
- chama_notification_latency_seconds: Notification delivery latency
- chama_notification_retry_total: Notification retries
- chama_notification_failures_total: Notifications dropped after all retries
- chama_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics
# =============================================================================

payment_entries_total = Counter(
    "chama_payment_entries_total",
    "Total number of payment entries recorded",
    ["payment_type", "source"],  # source: member, admin
)

payment_reviews_total = Counter(
    "chama_payment_reviews_total",
    "Total number of payment entry reviews",
    ["outcome"],  # approved, rejected
)

payment_amount_cents_total = Counter(
    "chama_payment_amount_cents_total",
    "Approved contribution money in minor units",
    ["payment_type"],
)

loan_transitions_total = Counter(
    "chama_loan_transitions_total",
    "Total number of loan status changes",
    ["status"],  # pending, approved, rejected, active, repaid
)

loan_disbursed_cents_total = Counter(
    "chama_loan_disbursed_cents_total",
    "Loan principal disbursed in minor units",
)

loan_repayments_total = Counter(
    "chama_loan_repayments_total",
    "Total number of loan repayment reviews",
    ["outcome"],  # submitted, approved, rejected
)


# =============================================================================
# Technical Metrics
# =============================================================================

ledger_inconsistencies_total = Counter(
    "chama_ledger_inconsistencies_total",
    "Cached ledger values found to disagree with their source",
    ["entity"],  # payment_record, loan, member_summary
)

concurrent_conflicts_total = Counter(
    "chama_concurrent_conflicts_total",
    "Writes rejected because the row changed since it was read",
    ["entity"],
)

notification_latency = Histogram(
    "chama_notification_latency_seconds",
    "Notification delivery latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

notification_retries = Counter(
    "chama_notification_retry_total",
    "Total number of notification retries",
)

notification_failures = Counter(
    "chama_notification_failures_total",
    "Total number of notifications dropped (after all retries)",
)

notification_success = Counter(
    "chama_notification_success_total",
    "Total number of successful notification deliveries",
)

http_requests_total = Counter(
    "chama_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "chama_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_payment_entry(payment_type: str, admin_entered: bool) -> None:
    """Record a new payment entry."""
    source = "admin" if admin_entered else "member"
    payment_entries_total.labels(payment_type=payment_type, source=source).inc()


def record_payment_review(approved: bool, payment_type: str, amount_cents: int) -> None:
    """Record an admin review of a payment entry."""
    outcome = "approved" if approved else "rejected"
    payment_reviews_total.labels(outcome=outcome).inc()
    if approved:
        payment_amount_cents_total.labels(payment_type=payment_type).inc(amount_cents)


def record_loan_transition(status: str, amount_cents: int = 0) -> None:
    """Record a loan reaching a new status."""
    loan_transitions_total.labels(status=status).inc()
    if status == "active":
        loan_disbursed_cents_total.inc(amount_cents)


def record_loan_repayment(outcome: str) -> None:
    """Record a loan repayment being submitted or reviewed."""
    loan_repayments_total.labels(outcome=outcome).inc()


def record_inconsistency(entity: str) -> None:
    """Record a cache drift found during recompute."""
    ledger_inconsistencies_total.labels(entity=entity).inc()


def record_concurrent_conflict(entity: str) -> None:
    """Record a write lost to a concurrent modification."""
    concurrent_conflicts_total.labels(entity=entity).inc()


@contextmanager
def track_notification_latency() -> Generator[None, None, None]:
    """Context manager to track notification latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        notification_latency.observe(duration)


def record_notification_retry() -> None:
    """Record a notification retry attempt."""
    notification_retries.inc()


def record_notification_success() -> None:
    """Record a successful notification delivery."""
    notification_success.inc()


def record_notification_failure() -> None:
    """Record a failed notification delivery (after all retries)."""
    notification_failures.inc()


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
