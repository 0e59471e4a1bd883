"""Role gate - the single capability check used by every protected route."""

from typing import Iterable, Optional

from src.models.user import RequestIdentity, Role
from src.utils.errors import AuthenticationError, AuthorizationError


def authorize(identity: Optional[RequestIdentity], required_roles: Optional[Iterable[Role]] = None) -> None:
    """
    Check that identity holds one of required_roles.

    required_roles of None means any authenticated identity is allowed.
    """
    if identity is None:
        raise AuthenticationError("Unauthorized: No token provided", code="UNAUTHORIZED_NO_TOKEN")

    if required_roles is None:
        return

    allowed = {Role(role) for role in required_roles}
    if identity.role not in allowed:
        names = ", ".join(sorted(role.value for role in allowed))
        raise AuthorizationError(f"Access denied: requires role {names}", code="FORBIDDEN_ROLE")


def is_owner_or_admin(identity: RequestIdentity, owner_uid: Optional[str]) -> bool:
    """True when identity owns the record or is an admin."""
    return identity.role == Role.ADMIN or (owner_uid is not None and identity.uid == owner_uid)


def email_matches(identity: RequestIdentity, recorded_email: Optional[str]) -> bool:
    """True when identity's email equals a recorded one. Empty emails never match."""
    return bool(identity.email) and bool(recorded_email) and identity.email == recorded_email
