"""
Integration tests for report endpoints.

These tests verify:
1. GET /v1/groups/{id}/reports/contributions - collection and compliance for a period
2. GET /v1/groups/{id}/reports/loans - loan portfolio by status
"""

import pytest
from httpx import AsyncClient

from conftest import add_member, find_record


async def admin_payment(client: AsyncClient, group: dict, member_id: str, amount_cents: int) -> None:
    record = await find_record(client, group["group_id"], member_id)
    response = await client.post(
        f"/v1/payments/{record['record_id']}/entries",
        json={
            "actor_id": group["admin_id"],
            "amount_cents": amount_cents,
            "method": "Cash",
            "proof_url": "https://example.com/cashbook/page-4.png",
            "payment_date": "2024-01-03T00:00:00Z",
            "admin_entered": True,
        },
    )
    assert response.status_code == 201, response.text


# =============================================================================
# Contribution Report Tests
# =============================================================================

class TestContributionReport:
    """Tests for GET /v1/groups/{group_id}/reports/contributions."""

    @pytest.mark.asyncio
    async def test_month_report(self, client: AsyncClient, group: dict):
        """Three members owing 5,000.00 for January: one paid, one half, one nothing."""
        third = await add_member(client, group["group_id"], group["admin_id"], display_name="Kondwani")
        await admin_payment(client, group, group["member_id"], 500_000)
        await admin_payment(client, group, third["member_id"], 250_000)

        response = await client.get(
            f"/v1/groups/{group['group_id']}/reports/contributions",
            params={"year": 2024, "month": "January"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["payment_type"] == "MonthlyContribution"
        assert data["total_expected_cents"] == 1_500_000
        assert data["total_collected_cents"] == 750_000
        assert data["collection_rate"] == 50.0
        assert data["fully_paid"] == 1
        assert data["partial"] == 1
        assert data["unpaid"] == 1
        assert data["total_collected_display"] == "MWK 7,500.00"

        by_name = {m["display_name"]: m["classification"] for m in data["members"]}
        assert by_name == {
            "Chikondi Banda": "unpaid",
            "Thoko Phiri": "fully_paid",
            "Kondwani": "partial",
        }

    @pytest.mark.asyncio
    async def test_member_paid_amounts_sum_to_collected(self, client: AsyncClient, group: dict):
        await admin_payment(client, group, group["member_id"], 120_000)
        await admin_payment(client, group, group["admin_id"], 380_000)

        response = await client.get(f"/v1/groups/{group['group_id']}/reports/contributions")

        data = response.json()
        assert sum(m["paid_cents"] for m in data["members"]) == data["total_collected_cents"]

    @pytest.mark.asyncio
    async def test_unknown_group_returns_404(self, client: AsyncClient):
        response = await client.get("/v1/groups/missing/reports/contributions")

        assert response.status_code == 404


# =============================================================================
# Loan Report Tests
# =============================================================================

class TestLoanReport:
    """Tests for GET /v1/groups/{group_id}/reports/loans."""

    @pytest.mark.asyncio
    async def test_portfolio_counts(self, client: AsyncClient, group: dict):
        loan = await client.post(
            f"/v1/groups/{group['group_id']}/loans",
            json={"borrower_id": group["member_id"], "amount_cents": 100_000, "repayment_months": 1},
        )
        loan_id = loan.json()["loan_id"]
        await client.post(f"/v1/loans/{loan_id}/approve", json={"actor_id": group["admin_id"]})
        await client.post(f"/v1/loans/{loan_id}/disburse", json={"actor_id": group["admin_id"]})
        await client.post(
            f"/v1/groups/{group['group_id']}/loans",
            json={"borrower_id": group["admin_id"], "amount_cents": 50_000, "repayment_months": 1},
        )

        response = await client.get(f"/v1/groups/{group['group_id']}/reports/loans")

        assert response.status_code == 200
        data = response.json()
        assert data["active_count"] == 1
        assert data["pending_count"] == 1
        assert data["total_disbursed_cents"] == 100_000
        assert data["total_outstanding_cents"] == 110_000
        assert data["total_interest_cents"] == 10_000
