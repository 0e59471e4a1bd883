"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import patch
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "estatehub-test")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_123")
os.environ.setdefault("PAYMENT_CURRENCY", "usd")

from src.services import supabase_client
from src.utils.errors import AuthenticationError
from src.utils.logging_config import LoggingConfig
from tests.utils.factories import create_property_data, create_user_data, identity_for
from tests.utils.fake_supabase import FakeSupabase


@pytest.fixture(autouse=True)
def keep_pytest_log_handlers():
    """Stop handlers from replacing pytest's capture handlers on the root logger."""
    LoggingConfig._configured = True
    yield


@pytest.fixture
def fake_supabase(monkeypatch):
    """In-memory Supabase installed as the client singleton."""
    fake = FakeSupabase()
    monkeypatch.setattr(supabase_client, "_client", fake)
    return fake


@pytest.fixture
def buyer_data(fake_supabase):
    data = create_user_data(role="user")
    fake_supabase.seed("users", data)
    return data


@pytest.fixture
def agent_data(fake_supabase):
    data = create_user_data(role="agent")
    fake_supabase.seed("users", data)
    return data


@pytest.fixture
def admin_data(fake_supabase):
    data = create_user_data(role="admin")
    fake_supabase.seed("users", data)
    return data


@pytest.fixture
def buyer(buyer_data):
    return identity_for(buyer_data)


@pytest.fixture
def agent(agent_data):
    return identity_for(agent_data)


@pytest.fixture
def admin(admin_data):
    return identity_for(admin_data)


@pytest.fixture
def listing_data(fake_supabase, agent_data):
    """A verified, active property owned by agent_data priced 100k-200k."""
    data = create_property_data(agent_data, price_min=100000.0, price_max=200000.0)
    fake_supabase.seed("properties", data)
    return data


@pytest.fixture
def token_for(fake_supabase):
    """Bearer tokens for seeded users.

    Patches Firebase verification so "token-<uid>" verifies as that user and
    anything else is rejected.
    """
    def claims_for(token):
        if not token.startswith("token-"):
            raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")
        uid = token[len("token-"):]
        row = fake_supabase.find("users", uid=uid) or {}
        return {
            "user_id": uid,
            "email": row.get("email", f"{uid}@example.com"),
            "name": row.get("display_name"),
        }

    with patch("src.services.identity.verify_id_token", side_effect=claims_for):
        yield lambda user_data: f"token-{user_data['uid']}"


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time

