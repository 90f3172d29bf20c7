"""
Fixtures for integration tests.

Provides:
- In-memory database for testing
- Mock notification client that records ledger events
- Test client for the FastAPI app
- A group with an admin and an ordinary member
"""

from typing import Any, AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from chama_ledger.main import app
from chama_ledger.core.dependencies import get_notification_client
from chama_ledger.domain.interfaces import NotificationClient
from chama_ledger.infrastructure.database import Base, get_db_session


GROUP_RULES = {
    "seed_money": {"amount_cents": 1_000_000, "due_date": "2024-01-31T00:00:00Z"},
    "monthly_contribution": {"amount_cents": 500_000, "day_of_month": 5},
    "monthly_penalty": {"rate": 10, "grace_period_days": 0},
    "loan_interest": {"month1": 10, "month2": 5, "month3_and_beyond": 5},
    "loan_rules": {"max_active_loans_per_member": 1, "max_repayment_months": 3},
    "cycle_months": 3,
}


# =============================================================================
# Mock Clients
# =============================================================================

class MockNotificationClient(NotificationClient):
    """Mock notification client that tracks the events it was asked to send."""

    def __init__(self, fail_mode: bool = False):
        self.fail_mode = fail_mode
        self.call_count = 0
        self.events_sent: List[Dict[str, Any]] = []

    async def send_event(self, event_type: str, group_id: str, payload: Dict[str, Any]) -> bool:
        self.call_count += 1

        if self.fail_mode:
            return False

        self.events_sent.append({"event": event_type, "group_id": group_id, **payload})
        return True

    def event_types(self) -> List[str]:
        return [event["event"] for event in self.events_sent]


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


# =============================================================================
# Mock Client Fixtures
# =============================================================================

@pytest.fixture
def mock_notification_client() -> MockNotificationClient:
    """Create a mock notification client."""
    return MockNotificationClient()


@pytest.fixture
def failing_notification_client() -> MockNotificationClient:
    """Create a notification client whose deliveries always fail."""
    return MockNotificationClient(fail_mode=True)


# =============================================================================
# App Client Fixtures
# =============================================================================

def _override_dependencies(session: AsyncSession, notifier: NotificationClient) -> None:
    async def override_get_db_session():
        yield session

    def override_get_notification_client():
        return notifier

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_notification_client] = override_get_notification_client


@pytest_asyncio.fixture
async def client(
    test_session: AsyncSession,
    mock_notification_client: MockNotificationClient,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database
    - Records notifications instead of sending them
    """
    _override_dependencies(test_session, mock_notification_client)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client_with_failing_notifier(
    test_session: AsyncSession,
    failing_notification_client: MockNotificationClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client whose notification deliveries always fail."""
    _override_dependencies(test_session, failing_notification_client)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Helper Fixtures
# =============================================================================

async def create_group(client: AsyncClient, rules: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Create a group through the API and return the response body."""
    response = await client.post(
        "/v1/groups",
        json={
            "name": "Tiyende Pamodzi",
            "creator_name": "Chikondi Banda",
            "cycle_start": "2024-01-01T00:00:00Z",
            "rules": GROUP_RULES if rules is None else rules,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


async def add_member(
    client: AsyncClient,
    group_id: str,
    admin_id: str,
    display_name: str = "Thoko Phiri",
    role: str = "member",
) -> Dict[str, Any]:
    """Add a member through the API and return the response body."""
    response = await client.post(
        f"/v1/groups/{group_id}/members",
        json={"actor_id": admin_id, "display_name": display_name, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def find_record(
    client: AsyncClient,
    group_id: str,
    member_id: str,
    payment_type: str = "MonthlyContribution",
) -> Dict[str, Any]:
    """First of a member's records of the given type."""
    response = await client.get(
        f"/v1/groups/{group_id}/payments",
        params={"member_id": member_id, "payment_type": payment_type},
    )
    assert response.status_code == 200, response.text
    return response.json()["records"][0]


@pytest_asyncio.fixture
async def group(client: AsyncClient) -> Dict[str, Any]:
    """
    A group created by an admin, with one ordinary member.

    Returns a dict with the group body and the admin and member ids.
    """
    body = await create_group(client)
    admin_id = body["members"][0]["member_id"]
    member = await add_member(client, body["group_id"], admin_id)
    return {
        "group_id": body["group_id"],
        "admin_id": admin_id,
        "member_id": member["member_id"],
        "body": body,
    }
