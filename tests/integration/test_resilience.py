"""
Integration tests for resilience and error handling.

These tests verify:
1. Notification webhook retry behavior with exponential backoff
2. Ledger writes succeed even when notifications fail
3. Error responses carry a stable format with the request id
"""

from typing import List

import httpx
import pytest
from httpx import AsyncClient

from chama_ledger.infrastructure.clients import HttpNotificationClient

from conftest import MockNotificationClient, add_member, create_group


WEBHOOK_URL = "http://notifications.test/events"


def scripted_transport(statuses: List[int], seen: list) -> httpx.MockTransport:
    """Transport answering with the given status codes in order (last one repeats)."""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        status = statuses[min(len(seen), len(statuses)) - 1]
        return httpx.Response(status, json={"ok": status < 400})

    return httpx.MockTransport(handler)


def make_client(transport: httpx.AsyncBaseTransport, **overrides) -> HttpNotificationClient:
    options = {"base_url": WEBHOOK_URL, "timeout": 1.0, "max_retries": 3, "enabled": True}
    options.update(overrides)
    return HttpNotificationClient(transport=transport, **options)


# =============================================================================
# Notification Client Tests
# =============================================================================

class TestNotificationDelivery:
    """Tests for HttpNotificationClient."""

    @pytest.mark.asyncio
    async def test_successful_delivery(self):
        seen = []
        client = make_client(scripted_transport([200], seen))

        delivered = await client.send_event("payment_approved", "group-1", {"record_id": "r-1"})

        assert delivered is True
        assert len(seen) == 1
        body = seen[0].read()
        assert b'"event":"payment_approved"' in body.replace(b" ", b"")
        assert b'"record_id":"r-1"' in body.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_retry_on_temporary_failure(self):
        seen = []
        client = make_client(scripted_transport([503, 502, 200], seen))

        delivered = await client.send_event("loan_repaid", "group-1", {"loan_id": "l-1"})

        assert delivered is True
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        seen = []
        client = make_client(scripted_transport([500], seen), max_retries=2)

        delivered = await client.send_event("loan_repaid", "group-1", {})

        assert delivered is False
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_connection_errors_are_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(204)

        client = make_client(httpx.MockTransport(handler))

        assert await client.send_event("payment_submitted", "group-1", {}) is True
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_disabled_client_sends_nothing(self):
        seen = []
        client = make_client(scripted_transport([200], seen), enabled=False)

        assert await client.send_event("payment_submitted", "group-1", {}) is False
        assert seen == []


# =============================================================================
# Partial Failure Tests
# =============================================================================

class TestPartialFailures:
    """Tests that ledger writes do not depend on notification delivery."""

    @pytest.mark.asyncio
    async def test_loan_request_persisted_even_if_notification_fails(
        self,
        client_with_failing_notifier: AsyncClient,
        failing_notification_client: MockNotificationClient,
    ):
        body = await create_group(client_with_failing_notifier)
        admin_id = body["members"][0]["member_id"]
        member = await add_member(client_with_failing_notifier, body["group_id"], admin_id)

        response = await client_with_failing_notifier.post(
            f"/v1/groups/{body['group_id']}/loans",
            json={"borrower_id": member["member_id"], "amount_cents": 50_000, "repayment_months": 1},
        )

        assert response.status_code == 201
        assert failing_notification_client.call_count == 1

        stored = await client_with_failing_notifier.get(f"/v1/loans/{response.json()['loan_id']}")
        assert stored.status_code == 200


# =============================================================================
# Error Response Format Tests
# =============================================================================

class TestErrorResponseFormat:
    """Tests for the error body returned by every handler."""

    @pytest.mark.asyncio
    async def test_404_error_format(self, client: AsyncClient):
        response = await client.get("/v1/payments/missing", headers={"X-Request-ID": "req-123"})

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "PAYMENT_RECORD_NOT_FOUND"
        assert "missing" in data["message"]
        assert data["request_id"] == "req-123"
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_generated_when_absent(self, client: AsyncClient):
        response = await client.get("/v1/loans/missing")

        assert response.json()["request_id"]
        assert response.headers["X-Request-ID"] == response.json()["request_id"]

    @pytest.mark.asyncio
    async def test_validation_error_lists_every_problem(self, client: AsyncClient, group: dict):
        response = await client.post(
            f"/v1/groups/{group['group_id']}/loans",
            json={"borrower_id": group["member_id"], "amount_cents": 100_000, "repayment_months": 9},
        )

        data = response.json()
        assert response.status_code == 400
        assert isinstance(data["details"], list)
        assert len(data["details"]) == 1
