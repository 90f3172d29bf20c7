"""
Integration tests for metrics tracking.

These tests verify:
1. Metrics endpoint returns valid Prometheus format
2. Business metrics (payment entries, reviews, loan transitions) are incremented
3. Technical metrics (HTTP requests, ledger inconsistencies) are recorded
4. The endpoint can be switched off
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from chama_ledger import main
from chama_ledger.core.metrics import REGISTRY
from chama_ledger.infrastructure.database import PaymentRecordModel

from conftest import find_record


def sample(name: str, labels: dict | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


# =============================================================================
# Metrics Endpoint Tests
# =============================================================================

class TestMetricsEndpoint:
    """Tests for GET /metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_endpoint_returns_prometheus_format(self, client: AsyncClient):
        """The /metrics endpoint should return Prometheus text format."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        content_type = response.headers.get("content-type", "")
        assert "text/plain" in content_type or "text/openmetrics" in content_type
        assert "# HELP" in response.text

    @pytest.mark.asyncio
    async def test_metrics_include_ledger_metrics(self, client: AsyncClient):
        response = await client.get("/metrics")

        content = response.text
        assert "chama_payment_entries_total" in content
        assert "chama_loan_transitions_total" in content
        assert "chama_notification_latency_seconds" in content

    @pytest.mark.asyncio
    async def test_metrics_can_be_disabled(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(main.settings, "metrics_enabled", False)

        response = await client.get("/metrics")

        assert response.status_code == 404


# =============================================================================
# Business Metrics Tests
# =============================================================================

class TestLedgerMetrics:
    """Tests for ledger activity counters."""

    @pytest.mark.asyncio
    async def test_payment_entry_and_review_counted(self, client: AsyncClient, group: dict):
        entries_before = sample(
            "chama_payment_entries_total",
            {"payment_type": "MonthlyContribution", "source": "member"},
        )
        approved_before = sample("chama_payment_reviews_total", {"outcome": "approved"})
        amount_before = sample(
            "chama_payment_amount_cents_total", {"payment_type": "MonthlyContribution"},
        )

        record = await find_record(client, group["group_id"], group["member_id"])
        submitted = await client.post(
            f"/v1/payments/{record['record_id']}/entries",
            json={
                "actor_id": group["member_id"],
                "amount_cents": 150_000,
                "method": "Cash",
                "proof_url": "https://example.com/r.png",
            },
        )
        entry_id = submitted.json()["entries"][0]["entry_id"]
        await client.post(
            f"/v1/payments/{record['record_id']}/entries/{entry_id}/approve",
            json={"actor_id": group["admin_id"]},
        )

        assert sample(
            "chama_payment_entries_total",
            {"payment_type": "MonthlyContribution", "source": "member"},
        ) == entries_before + 1
        assert sample("chama_payment_reviews_total", {"outcome": "approved"}) == approved_before + 1
        assert sample(
            "chama_payment_amount_cents_total", {"payment_type": "MonthlyContribution"},
        ) == amount_before + 150_000

    @pytest.mark.asyncio
    async def test_loan_disbursement_counted(self, client: AsyncClient, group: dict):
        active_before = sample("chama_loan_transitions_total", {"status": "active"})
        disbursed_before = sample("chama_loan_disbursed_cents_total")

        loan = await client.post(
            f"/v1/groups/{group['group_id']}/loans",
            json={"borrower_id": group["member_id"], "amount_cents": 80_000, "repayment_months": 1},
        )
        loan_id = loan.json()["loan_id"]
        await client.post(f"/v1/loans/{loan_id}/approve", json={"actor_id": group["admin_id"]})
        await client.post(f"/v1/loans/{loan_id}/disburse", json={"actor_id": group["admin_id"]})

        assert sample("chama_loan_transitions_total", {"status": "active"}) == active_before + 1
        assert sample("chama_loan_disbursed_cents_total") == disbursed_before + 80_000


# =============================================================================
# Technical Metrics Tests
# =============================================================================

class TestTechnicalMetrics:
    """Tests for HTTP and consistency metrics."""

    @pytest.mark.asyncio
    async def test_http_requests_counted(self, client: AsyncClient):
        endpoints = ("/v1/groups/{group_id}", "/v1/groups/missing")

        def total() -> float:
            return sum(
                sample("chama_http_requests_total", {"method": "GET", "endpoint": e, "status": "404"})
                for e in endpoints
            )

        before = total()

        await client.get("/v1/groups/missing")

        assert total() == before + 1

    @pytest.mark.asyncio
    async def test_inconsistency_counted(
        self,
        client: AsyncClient,
        group: dict,
        test_session: AsyncSession,
    ):
        before = sample("chama_ledger_inconsistencies_total", {"entity": "payment_record"})
        record = await find_record(client, group["group_id"], group["member_id"])
        await test_session.execute(
            update(PaymentRecordModel)
            .where(PaymentRecordModel.id == record["record_id"])
            .values(amount_paid_cents=1)
        )

        response = await client.get(f"/v1/payments/{record['record_id']}")

        assert response.status_code == 409
        assert sample("chama_ledger_inconsistencies_total", {"entity": "payment_record"}) == before + 1
