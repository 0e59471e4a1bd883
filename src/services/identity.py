"""Identity verification - Firebase ID tokens mapped to users table records."""

import os
from typing import Mapping, Optional

import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import id_token as google_id_token

from src.models.user import RequestIdentity, Role, User
from src.services import supabase_client
from src.utils.errors import AuthenticationError, ServiceNotConfiguredError
from src.utils.logging import get_structured_logger, log_timing, mask_email, mask_user_id
from src.utils.timestamps import utc_now_iso

logger = get_structured_logger(__name__)


def get_firebase_project_id() -> str:
    """Get the Firebase project ID (token audience) from environment."""
    project_id = os.environ.get("FIREBASE_PROJECT_ID", "").strip()
    if not project_id:
        raise ServiceNotConfiguredError(
            "Firebase authentication is not available. Please configure Firebase credentials.",
            code="FIREBASE_UNAVAILABLE",
        )
    return project_id


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    """Pull the credential out of an Authorization: Bearer header."""
    auth_header = headers.get("Authorization") or headers.get("authorization") or ""
    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Unauthorized: No token provided", code="UNAUTHORIZED_NO_TOKEN")
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Unauthorized: No token provided", code="UNAUTHORIZED_NO_TOKEN")
    return token


def verify_id_token(token: str) -> dict:
    """
    Verify a Firebase ID token against Google's public certificates.

    Fails closed: any verification problem raises AuthenticationError.
    """
    if not token:
        raise AuthenticationError("Unauthorized: No token provided", code="UNAUTHORIZED_NO_TOKEN")

    project_id = get_firebase_project_id()
    request = google.auth.transport.requests.Request()

    try:
        with log_timing("firebase.verify_id_token", logger=logger):
            claims = google_id_token.verify_firebase_token(token, request, audience=project_id)
    except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
        logger.warning("ID token verification failed", error=str(e))
        raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")

    if not claims or not (claims.get("user_id") or claims.get("sub")):
        raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")
    # Ownership of offers and listings is matched by email
    if not claims.get("email"):
        raise AuthenticationError("Account has no email address", code="EMAIL_REQUIRED")
    return claims


def _claims_uid(claims: dict) -> str:
    return claims.get("user_id") or claims.get("sub")


def _default_display_name(claims: dict) -> str:
    email = claims.get("email") or ""
    return claims.get("name") or email.split("@")[0] or "user"


async def resolve_user(claims: dict) -> User:
    """
    Resolve verified token claims to a User record.

    Auto-creates the user with the default role on first sight.
    """
    uid = _claims_uid(claims)
    existing = await supabase_client.get_user_by_uid(uid)
    if existing:
        return User(**existing)

    now = utc_now_iso()
    new_user = {
        "uid": uid,
        "email": claims.get("email") or "",
        "display_name": _default_display_name(claims),
        "photo_url": claims.get("picture"),
        "role": Role.USER.value,
        "verification_status": "verified",
        "is_fraud": False,
        "created_at": now,
        "last_login_at": now,
    }
    created = await supabase_client.create_user(new_user)
    logger.info(
        "Created new user on first sight",
        uid=mask_user_id(uid),
        email=mask_email(new_user["email"]),
        role=Role.USER.value,
    )
    return User(**created)


async def login(id_token: Optional[str]) -> User:
    """Verify an ID token and return the user, refreshing last login for known users."""
    if not id_token:
        raise AuthenticationError("idToken is required", code="UNAUTHORIZED_NO_TOKEN")

    claims = verify_id_token(id_token)
    uid = _claims_uid(claims)

    existing = await supabase_client.get_user_by_uid(uid)
    if not existing:
        return await resolve_user(claims)

    updated = await supabase_client.update_user(uid, {"last_login_at": utc_now_iso()})
    user = User(**(updated or existing))
    logger.info("User logged in", uid=mask_user_id(uid), role=user.role.value)
    return user


async def authenticate_request(headers: Mapping[str, str]) -> RequestIdentity:
    """Resolve the bearer credential on a request to a RequestIdentity."""
    token = extract_bearer_token(headers)
    claims = verify_id_token(token)
    user = await resolve_user(claims)
    return RequestIdentity.from_user(user)
