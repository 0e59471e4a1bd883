"""Tests for Firebase identity verification and user provisioning."""

import pytest
from unittest.mock import patch

from src.models.user import Role
from src.services import identity
from src.utils.errors import AuthenticationError, ServiceNotConfiguredError
from tests.utils.factories import create_user_data


def claims(uid="firebase-uid-1", email="new.buyer@example.com", **extra):
    data = {"user_id": uid, "sub": uid, "email": email, "name": "New Buyer"}
    data.update(extra)
    return data


@pytest.mark.unit
@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Basic abc"},
    {"Authorization": "Bearer "},
])
def test_extract_bearer_token_missing(headers):
    with pytest.raises(AuthenticationError) as exc_info:
        identity.extract_bearer_token(headers)
    assert exc_info.value.code == "UNAUTHORIZED_NO_TOKEN"


@pytest.mark.unit
def test_extract_bearer_token():
    assert identity.extract_bearer_token({"Authorization": "Bearer abc.def"}) == "abc.def"


@pytest.mark.unit
def test_verify_id_token_passes_project_audience(monkeypatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "estatehub-test")

    with patch("src.services.identity.google_id_token.verify_firebase_token", return_value=claims()) as verify:
        result = identity.verify_id_token("good-token")

    assert result["user_id"] == "firebase-uid-1"
    assert verify.call_args.args[0] == "good-token"
    assert verify.call_args.kwargs["audience"] == "estatehub-test"


@pytest.mark.unit
def test_verify_id_token_invalid_fails_closed():
    with patch(
        "src.services.identity.google_id_token.verify_firebase_token",
        side_effect=ValueError("Token expired"),
    ):
        with pytest.raises(AuthenticationError) as exc_info:
            identity.verify_id_token("expired-token")

    assert exc_info.value.code == "INVALID_TOKEN"
    assert exc_info.value.status_code == 401


@pytest.mark.unit
def test_verify_id_token_without_subject():
    with patch("src.services.identity.google_id_token.verify_firebase_token", return_value={"email": "x@y.com"}):
        with pytest.raises(AuthenticationError):
            identity.verify_id_token("token")


@pytest.mark.unit
def test_verify_id_token_without_project(monkeypatch):
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)

    with pytest.raises(ServiceNotConfiguredError) as exc_info:
        identity.verify_id_token("token")

    assert exc_info.value.code == "FIREBASE_UNAVAILABLE"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_user_creates_on_first_sight(fake_supabase):
    user = await identity.resolve_user(claims())

    assert user.role == Role.USER
    assert user.is_fraud is False
    assert user.verification_status == "verified"
    stored = fake_supabase.find("users", uid="firebase-uid-1")
    assert stored["email"] == "new.buyer@example.com"
    assert stored["display_name"] == "New Buyer"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_user_keeps_existing_role(fake_supabase):
    existing = create_user_data(role="agent", uid="firebase-uid-1")
    fake_supabase.seed("users", existing)

    user = await identity.resolve_user(claims())

    assert user.role == Role.AGENT
    assert len(fake_supabase.rows("users")) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_user_defaults_display_name_to_email_prefix(fake_supabase):
    user = await identity.resolve_user({"user_id": "u-2", "email": "sam@example.com"})

    assert user.display_name == "sam"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_refreshes_last_login(fake_supabase, freeze_time_fixture):
    existing = create_user_data(uid="firebase-uid-1", last_login_at="2020-01-01T00:00:00+00:00")
    fake_supabase.seed("users", existing)

    with patch("src.services.identity.verify_id_token", return_value=claims()):
        user = await identity.login("token")

    assert user.last_login_at.startswith("2024-12-09T12:00:00")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_requires_token(fake_supabase):
    with pytest.raises(AuthenticationError):
        await identity.login(None)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_authenticate_request_returns_identity(fake_supabase):
    with patch("src.services.identity.verify_id_token", return_value=claims()):
        request_identity = await identity.authenticate_request({"Authorization": "Bearer token"})

    assert request_identity.uid == "firebase-uid-1"
    assert request_identity.role == Role.USER


@pytest.mark.unit
@pytest.mark.parametrize("email", [None, ""])
def test_verify_id_token_requires_email(email):
    with patch(
        "src.services.identity.google_id_token.verify_firebase_token",
        return_value=claims(email=email),
    ):
        with pytest.raises(AuthenticationError) as exc_info:
            identity.verify_id_token("phone-only-token")

    assert exc_info.value.code == "EMAIL_REQUIRED"
