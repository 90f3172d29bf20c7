"""
Integration tests for group endpoints.

These tests verify:
1. POST /v1/groups - create a group with canonical or legacy rules
2. PUT /v1/groups/{id}/rules - admin-only rule changes
3. POST /v1/groups/{id}/members - admin-only membership with payment records
4. Member financial summaries and their rebuild
5. Registration, approval and removal of members
6. Closing a group to new members, payments and loans
"""

import pytest
from httpx import AsyncClient

from conftest import GROUP_RULES, MockNotificationClient, add_member, create_group, find_record


# =============================================================================
# Group Creation Tests
# =============================================================================

class TestCreateGroup:
    """Tests for POST /v1/groups."""

    @pytest.mark.asyncio
    async def test_creator_becomes_senior_admin(self, client: AsyncClient):
        body = await create_group(client)

        assert body["name"] == "Tiyende Pamodzi"
        assert len(body["members"]) == 1
        assert body["members"][0]["role"] == "senior_admin"
        assert body["created_by"] == body["members"][0]["member_id"]

    @pytest.mark.asyncio
    async def test_rules_are_returned_in_canonical_form(self, client: AsyncClient):
        body = await create_group(client)

        rules = body["rules"]
        assert rules["monthly_contribution"]["amount_cents"] == 500_000
        assert rules["monthly_penalty"]["rate"] == 10
        assert rules["loan_interest"]["month3_and_beyond"] == 5
        assert rules["cycle_months"] == 3

    @pytest.mark.asyncio
    async def test_legacy_rules_are_accepted(self, client: AsyncClient):
        body = await create_group(client, rules={
            "seedMoney": {"amount": 10000, "dueDate": "2024-01-31T00:00:00Z"},
            "monthlyContribution": {"amount": 5000, "dayOfMonth": 5},
            "monthlyPenalty": {"percentage": 10, "gracePeriod": 3},
            "loanInterest": {"month1": 10, "month2": 5, "month3": 5},
        })

        rules = body["rules"]
        assert rules["seed_money"]["amount_cents"] == 1_000_000
        assert rules["monthly_contribution"]["amount_cents"] == 500_000
        assert rules["monthly_penalty"]["grace_period_days"] == 3
        assert rules["loan_interest"]["month3_and_beyond"] == 5

    @pytest.mark.asyncio
    async def test_creator_gets_payment_records(self, client: AsyncClient):
        body = await create_group(client)
        admin_id = body["members"][0]["member_id"]

        response = await client.get(
            f"/v1/groups/{body['group_id']}/payments",
            params={"member_id": admin_id},
        )

        records = response.json()["records"]
        assert [r["period_key"] for r in records] == [
            "2024_SeedMoney",
            "2024_January",
            "2024_February",
            "2024_March",
        ]

    @pytest.mark.asyncio
    async def test_invalid_rules_return_400(self, client: AsyncClient):
        rules = {**GROUP_RULES, "monthly_contribution": {"amount_cents": 500_000, "day_of_month": 40}}

        response = await client.post(
            "/v1/groups",
            json={
                "name": "Tiyende Pamodzi",
                "creator_name": "Chikondi Banda",
                "cycle_start": "2024-01-01T00:00:00Z",
                "rules": rules,
            },
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert any("day_of_month" in detail for detail in data["details"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override",
        [
            {"monthly_contribution": {"amount": "NaN", "day_of_month": 5}},
            {"seed_money": {"amount": "Infinity"}},
            {"cycle_months": "Infinity"},
            {"cycle_months": 1_000_000},
        ],
    )
    async def test_non_finite_or_oversized_rules_return_400(self, client: AsyncClient, override: dict):
        response = await client.post(
            "/v1/groups",
            json={
                "name": "Tiyende Pamodzi",
                "creator_name": "Chikondi Banda",
                "cycle_start": "2024-01-01T00:00:00Z",
                "rules": {**GROUP_RULES, **override},
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_blank_name_returns_422(self, client: AsyncClient):
        response = await client.post(
            "/v1/groups",
            json={"name": "   ", "creator_name": "Chikondi", "cycle_start": "2024-01-01T00:00:00Z"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_group_returns_404(self, client: AsyncClient):
        response = await client.get("/v1/groups/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "GROUP_NOT_FOUND"


# =============================================================================
# Rules and Membership Tests
# =============================================================================

class TestGroupAdministration:
    """Tests for rule changes and membership."""

    @pytest.mark.asyncio
    async def test_admin_updates_rules(self, client: AsyncClient, group: dict):
        rules = {**GROUP_RULES, "monthly_penalty": {"rate": 5, "grace_period_days": 7}}

        response = await client.put(
            f"/v1/groups/{group['group_id']}/rules",
            json={"actor_id": group["admin_id"], "rules": rules},
        )

        assert response.status_code == 200
        assert response.json()["rules"]["monthly_penalty"] == {"rate": 5, "grace_period_days": 7}

    @pytest.mark.asyncio
    async def test_member_cannot_update_rules(self, client: AsyncClient, group: dict):
        response = await client.put(
            f"/v1/groups/{group['group_id']}/rules",
            json={"actor_id": group["member_id"], "rules": GROUP_RULES},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_AUTHORIZED"

    @pytest.mark.asyncio
    async def test_member_cannot_add_members(self, client: AsyncClient, group: dict):
        response = await client.post(
            f"/v1/groups/{group['group_id']}/members",
            json={"actor_id": group["member_id"], "display_name": "Mphatso"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_added_admin_can_add_members(self, client: AsyncClient, group: dict):
        treasurer = await add_member(
            client, group["group_id"], group["admin_id"], display_name="Treasurer", role="admin",
        )

        member = await add_member(client, group["group_id"], treasurer["member_id"], display_name="Mphatso")

        assert member["role"] == "member"
        response = await client.get(f"/v1/groups/{group['group_id']}")
        assert len(response.json()["members"]) == 4

    @pytest.mark.asyncio
    async def test_unknown_actor_returns_404(self, client: AsyncClient, group: dict):
        response = await client.post(
            f"/v1/groups/{group['group_id']}/members",
            json={"actor_id": "stranger", "display_name": "Mphatso"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "MEMBER_NOT_FOUND"


# =============================================================================
# Member Summary Tests
# =============================================================================

class TestMemberSummary:
    """Tests for the member financial summary endpoints."""

    @pytest.mark.asyncio
    async def test_new_member_summary(self, client: AsyncClient, group: dict):
        response = await client.get(
            f"/v1/groups/{group['group_id']}/members/{group['member_id']}/summary",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_paid_cents"] == 0
        assert data["total_loans_cents"] == 0
        # Seed money and three months, all overdue with a 10% penalty
        assert data["total_arrears_cents"] == 2_750_000
        assert data["total_penalties_cents"] == 250_000
        assert data["total_paid_display"] == "MWK 0.00"

    @pytest.mark.asyncio
    async def test_admin_rebuilds_summary(self, client: AsyncClient, group: dict):
        response = await client.post(
            f"/v1/groups/{group['group_id']}/members/{group['member_id']}/summary/rebuild",
            json={"actor_id": group["admin_id"]},
        )

        assert response.status_code == 200
        assert response.json()["member_id"] == group["member_id"]

    @pytest.mark.asyncio
    async def test_member_cannot_rebuild_summary(self, client: AsyncClient, group: dict):
        response = await client.post(
            f"/v1/groups/{group['group_id']}/members/{group['member_id']}/summary/rebuild",
            json={"actor_id": group["member_id"]},
        )

        assert response.status_code == 403


# =============================================================================
# Membership Lifecycle Tests
# =============================================================================

async def register(client: AsyncClient, group_id: str, display_name: str = "Mphatso Tembo"):
    return await client.post(
        f"/v1/groups/{group_id}/registrations",
        json={"display_name": display_name},
    )


async def member_action(client: AsyncClient, group_id: str, member_id: str, action: str, actor_id: str):
    return await client.post(
        f"/v1/groups/{group_id}/members/{member_id}/{action}",
        json={"actor_id": actor_id},
    )


async def member_records(client: AsyncClient, group_id: str, member_id: str) -> list:
    response = await client.get(f"/v1/groups/{group_id}/payments", params={"member_id": member_id})
    return response.json()["records"]


class TestMembershipLifecycle:
    """Tests for registration, approval and removal of members."""

    @pytest.mark.asyncio
    async def test_registration_starts_pending_without_records(self, client: AsyncClient, group: dict):
        response = await register(client, group["group_id"])

        assert response.status_code == 201
        member = response.json()
        assert member["status"] == "pending"
        assert member["role"] == "member"
        assert await member_records(client, group["group_id"], member["member_id"]) == []

    @pytest.mark.asyncio
    async def test_admin_approval_activates_and_creates_records(
        self,
        client: AsyncClient,
        group: dict,
        mock_notification_client: MockNotificationClient,
    ):
        pending = (await register(client, group["group_id"])).json()

        response = await member_action(
            client, group["group_id"], pending["member_id"], "approve", group["admin_id"],
        )

        assert response.status_code == 200
        assert response.json()["status"] == "active"
        records = await member_records(client, group["group_id"], pending["member_id"])
        assert len(records) == 4
        assert mock_notification_client.event_types() == ["member_approved"]

    @pytest.mark.asyncio
    async def test_member_cannot_approve_registrations(self, client: AsyncClient, group: dict):
        pending = (await register(client, group["group_id"])).json()

        response = await member_action(
            client, group["group_id"], pending["member_id"], "approve", group["member_id"],
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_active_member_cannot_be_approved_again(self, client: AsyncClient, group: dict):
        response = await member_action(
            client, group["group_id"], group["member_id"], "approve", group["admin_id"],
        )

        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_STATE_TRANSITION"

    @pytest.mark.asyncio
    async def test_pending_member_cannot_borrow(self, client: AsyncClient, group: dict):
        pending = (await register(client, group["group_id"])).json()

        response = await client.post(
            f"/v1/groups/{group['group_id']}/loans",
            json={
                "borrower_id": pending["member_id"],
                "amount_cents": 100_000,
                "repayment_months": 1,
                "purpose": "Fertilizer",
            },
        )

        assert response.status_code == 409
        assert "awaiting approval" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_admin_removes_member_without_ledger_history(
        self,
        client: AsyncClient,
        group: dict,
        mock_notification_client: MockNotificationClient,
    ):
        response = await member_action(
            client, group["group_id"], group["member_id"], "remove", group["admin_id"],
        )

        assert response.status_code == 204
        body = (await client.get(f"/v1/groups/{group['group_id']}")).json()
        assert [m["member_id"] for m in body["members"]] == [group["admin_id"]]
        assert await member_records(client, group["group_id"], group["member_id"]) == []
        assert mock_notification_client.event_types() == ["member_removed"]

    @pytest.mark.asyncio
    async def test_removing_pending_member_declines_registration(self, client: AsyncClient, group: dict):
        pending = (await register(client, group["group_id"])).json()

        response = await member_action(
            client, group["group_id"], pending["member_id"], "remove", group["admin_id"],
        )

        assert response.status_code == 204
        summary = await client.get(
            f"/v1/groups/{group['group_id']}/members/{pending['member_id']}/summary",
        )
        assert summary.status_code == 404

    @pytest.mark.asyncio
    async def test_member_with_payments_cannot_be_removed(self, client: AsyncClient, group: dict):
        record = await find_record(client, group["group_id"], group["member_id"])
        await client.post(
            f"/v1/payments/{record['record_id']}/entries",
            json={
                "actor_id": group["member_id"],
                "amount_cents": 100_000,
                "method": "Cash",
                "proof_url": "https://example.com/receipts/1.png",
                "payment_date": "2024-01-04T00:00:00Z",
            },
        )

        response = await member_action(
            client, group["group_id"], group["member_id"], "remove", group["admin_id"],
        )

        assert response.status_code == 409
        assert len(await member_records(client, group["group_id"], group["member_id"])) == 4

    @pytest.mark.asyncio
    async def test_founder_cannot_be_removed(self, client: AsyncClient, group: dict):
        treasurer = await add_member(
            client, group["group_id"], group["admin_id"], display_name="Treasurer", role="admin",
        )

        response = await member_action(
            client, group["group_id"], group["admin_id"], "remove", treasurer["member_id"],
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_member_cannot_remove_members(self, client: AsyncClient, group: dict):
        response = await member_action(
            client, group["group_id"], group["admin_id"], "remove", group["member_id"],
        )

        assert response.status_code == 403


# =============================================================================
# Group Closure Tests
# =============================================================================

class TestCloseGroup:
    """Tests for POST /v1/groups/{group_id}/close."""

    async def _close(self, client: AsyncClient, group: dict, actor_id: str | None = None):
        return await client.post(
            f"/v1/groups/{group['group_id']}/close",
            json={"actor_id": actor_id or group["admin_id"]},
        )

    @pytest.mark.asyncio
    async def test_admin_closes_group(
        self,
        client: AsyncClient,
        group: dict,
        mock_notification_client: MockNotificationClient,
    ):
        response = await self._close(client, group)

        assert response.status_code == 200
        assert response.json()["status"] == "closed"
        assert mock_notification_client.event_types() == ["group_closed"]

    @pytest.mark.asyncio
    async def test_member_cannot_close_group(self, client: AsyncClient, group: dict):
        response = await self._close(client, group, actor_id=group["member_id"])

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_closing_twice_is_refused(self, client: AsyncClient, group: dict):
        await self._close(client, group)

        response = await self._close(client, group)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_closed_group_refuses_new_members_and_registrations(self, client: AsyncClient, group: dict):
        await self._close(client, group)

        added = await client.post(
            f"/v1/groups/{group['group_id']}/members",
            json={"actor_id": group["admin_id"], "display_name": "Mphatso"},
        )
        registered = await register(client, group["group_id"])

        assert added.status_code == 409
        assert registered.status_code == 409

    @pytest.mark.asyncio
    async def test_closed_group_refuses_payments_and_loans(self, client: AsyncClient, group: dict):
        record = await find_record(client, group["group_id"], group["member_id"])
        await self._close(client, group)

        payment = await client.post(
            f"/v1/payments/{record['record_id']}/entries",
            json={
                "actor_id": group["member_id"],
                "amount_cents": 100_000,
                "method": "Cash",
                "proof_url": "https://example.com/receipts/1.png",
            },
        )
        loan = await client.post(
            f"/v1/groups/{group['group_id']}/loans",
            json={
                "borrower_id": group["member_id"],
                "amount_cents": 100_000,
                "repayment_months": 1,
                "purpose": "Fertilizer",
            },
        )

        assert payment.status_code == 409
        assert payment.json()["message"] == f"Group {group['group_id']} is closed"
        assert loan.status_code == 409

    @pytest.mark.asyncio
    async def test_pending_entries_can_still_be_reviewed(self, client: AsyncClient, group: dict):
        record = await find_record(client, group["group_id"], group["member_id"])
        submitted = await client.post(
            f"/v1/payments/{record['record_id']}/entries",
            json={
                "actor_id": group["member_id"],
                "amount_cents": 100_000,
                "method": "Cash",
                "proof_url": "https://example.com/receipts/1.png",
                "payment_date": "2024-01-04T00:00:00Z",
            },
        )
        entry_id = submitted.json()["entries"][0]["entry_id"]
        await self._close(client, group)

        response = await client.post(
            f"/v1/payments/{record['record_id']}/entries/{entry_id}/approve",
            json={"actor_id": group["admin_id"]},
        )

        assert response.status_code == 200
        assert response.json()["amount_paid_cents"] == 100_000


# =============================================================================
# Health Tests
# =============================================================================

class TestHealth:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
