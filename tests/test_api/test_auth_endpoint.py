"""End-to-end tests for the auth and users functions."""

import pytest
from unittest.mock import patch

from api import auth, users
from tests.utils.factories import create_property_data
from tests.utils.helpers import call_handler


@pytest.mark.unit
def test_login_provisions_user(fake_supabase):
    claims = {"user_id": "fresh-uid", "email": "fresh@example.com", "name": "Fresh"}

    with patch("src.services.identity.verify_id_token", return_value=claims):
        response = call_handler(auth.handler, "POST", "/api/auth/login", body={"idToken": "abc"})

    assert response.status == 200
    assert response.body["user"]["role"] == "user"
    assert fake_supabase.find("users", uid="fresh-uid") is not None


@pytest.mark.unit
def test_login_without_firebase_config(fake_supabase, monkeypatch):
    monkeypatch.delenv("FIREBASE_PROJECT_ID")

    response = call_handler(auth.handler, "POST", "/api/auth/login", body={"idToken": "abc"})

    assert response.status == 503
    assert response.body["code"] == "FIREBASE_UNAVAILABLE"


@pytest.mark.unit
def test_me_and_logout(fake_supabase, token_for, agent_data):
    me = call_handler(auth.handler, "GET", "/api/auth/me", token=token_for(agent_data))
    logout = call_handler(auth.handler, "POST", "/api/auth/logout")

    assert me.body["user"]["uid"] == agent_data["uid"]
    assert me.body["user"]["role"] == "agent"
    assert logout.status == 200


@pytest.mark.unit
def test_admin_marks_agent_as_fraud(fake_supabase, token_for, admin_data, agent_data):
    fake_supabase.seed("properties", create_property_data(agent_data))

    response = call_handler(
        users.handler, "PATCH", f"/api/users/{agent_data['uid']}/fraud", token=token_for(admin_data)
    )

    assert response.status == 200
    assert response.body["user"]["is_fraud"] is True
    assert response.body["propertiesRemoved"] == 1


@pytest.mark.unit
def test_non_admin_cannot_change_roles(fake_supabase, token_for, buyer_data):
    response = call_handler(
        users.handler, "PATCH", f"/api/users/{buyer_data['uid']}/role",
        body={"role": "admin"}, token=token_for(buyer_data),
    )

    assert response.status == 403
    assert fake_supabase.find("users", uid=buyer_data["uid"])["role"] == "user"


@pytest.mark.unit
def test_update_own_profile(fake_supabase, token_for, buyer_data):
    response = call_handler(
        users.handler, "PATCH", "/api/users/me", body={"display_name": "New Name"}, token=token_for(buyer_data)
    )

    assert response.body["user"]["display_name"] == "New Name"
