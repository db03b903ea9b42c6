"""
Shared test fixtures.
"""

import pytest

from scopegate.adapters.memory import InMemoryCrudClient
from scopegate.core.context import Actor, Role, ScopeState
from scopegate.gateway import ScopedGateway
from scopegate.policy.columns import ColumnAvailability
from scopegate.policy.models import console_policy
from scopegate.utils.testing import RecordingCrudClient

# === Test Tables ===

TABLES = {
    "branches": ["id", "organization_id", "name", "active"],
    "quote_requests": ["id", "organization_id", "status", "customer_name", "created_at"],
    "as_requests": ["id", "branch_id", "status"],
    # Deployed without an organization column
    "dealer_applications": ["id", "status", "company_name"],
    "branch_images": ["id", "organization_id", "branch_id", "url"],
    "admin_profiles": ["user_id", "organization_id", "branch_id", "role", "name"],
    "notices": ["id", "title"],
}


def seed_rows(client: InMemoryCrudClient) -> None:
    client.seed("branches", [
        {"id": "b-1", "organization_id": "org-1", "name": "Seoul", "active": True},
        {"id": "b-2", "organization_id": "org-1", "name": "Incheon", "active": False},
        {"id": "b-9", "organization_id": "org-1", "name": "Suwon", "active": True},
        {"id": "b-3", "organization_id": "org-2", "name": "Busan", "active": True},
    ])
    client.seed("quote_requests", [
        {"id": "q-1", "organization_id": "org-1", "status": "requested", "customer_name": "Kim", "created_at": "2024-01-01"},
        {"id": "q-2", "organization_id": "org-1", "status": "completed", "customer_name": "Lee", "created_at": "2024-01-03"},
        {"id": "q-3", "organization_id": "org-2", "status": "requested", "customer_name": "Park", "created_at": "2024-01-02"},
    ])
    client.seed("as_requests", [
        {"id": "a-1", "branch_id": "b-9", "status": "waiting"},
        {"id": "a-2", "branch_id": "b-1", "status": "scheduled"},
    ])
    client.seed("dealer_applications", [
        {"id": "d-1", "status": "waiting", "company_name": "Wrap Co"},
        {"id": "d-2", "status": "approved", "company_name": "Film Co"},
    ])
    client.seed("branch_images", [
        {"id": "i-1", "organization_id": "org-1", "branch_id": "b-9", "url": "a.png"},
        {"id": "i-2", "organization_id": "org-1", "branch_id": "b-1", "url": "b.png"},
    ])
    client.seed("admin_profiles", [
        {"user_id": "u-1", "organization_id": "org-1", "branch_id": None, "role": "admin", "name": "Root"},
        {"user_id": "u-2", "organization_id": "org-1", "branch_id": "b-9", "role": "dealer_admin", "name": "Dealer"},
    ])
    client.seed("notices", [
        {"id": "n-1", "title": "Hello"},
    ])


# === Fixtures ===


@pytest.fixture
def policy():
    """The dealer console scope policy."""
    return console_policy()


@pytest.fixture
def admin():
    return Actor(role=Role.ADMIN, organization_id="org-1", user_id="u-1")


@pytest.fixture
def dealer_admin():
    return Actor(
        role=Role.DEALER_ADMIN,
        organization_id="org-1",
        branch_id="b-9",
        user_id="u-2",
    )


@pytest.fixture
def admin_scope(admin):
    return ScopeState(admin)


@pytest.fixture
def dealer_scope(dealer_admin):
    return ScopeState(dealer_admin)


@pytest.fixture
def memory_client():
    """An in-memory store with seeded console tables."""
    client = InMemoryCrudClient()
    for name, columns in TABLES.items():
        client.add_table(name, columns)
    seed_rows(client)
    return client


@pytest.fixture
def client(memory_client):
    """The seeded store, wrapped to record what it receives."""
    return RecordingCrudClient(memory_client)


@pytest.fixture
def columns():
    return ColumnAvailability()


@pytest.fixture
def admin_gateway(client, admin_scope, policy, columns):
    return ScopedGateway(client, admin_scope, policy, columns=columns)


@pytest.fixture
def dealer_gateway(client, dealer_scope, policy, columns):
    return ScopedGateway(client, dealer_scope, policy, columns=columns)
