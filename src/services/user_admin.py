"""User profile and admin user management."""

from typing import Any

from src.models.user import RequestIdentity, Role, User
from src.services import supabase_client
from src.utils.errors import ConflictError, NotFoundError, ValidationError
from src.utils.logging import get_structured_logger, mask_user_id
from src.utils.timestamps import utc_now_iso

logger = get_structured_logger(__name__)

PROFILE_FIELDS = ("display_name", "photo_url")


async def get_user(uid: str) -> User:
    row = await supabase_client.get_user_by_uid(uid)
    if not row:
        raise NotFoundError("User not found")
    return User(**row)


async def update_profile(identity: RequestIdentity, data: dict) -> User:
    """Update the caller's own display name / photo."""
    updates = {key: data[key] for key in PROFILE_FIELDS if key in data}
    if not updates:
        raise ValidationError("No fields to update")
    if "display_name" in updates and not str(updates["display_name"] or "").strip():
        raise ValidationError("display_name must not be empty")

    updates["updated_at"] = utc_now_iso()
    row = await supabase_client.update_user(identity.uid, updates)
    if not row:
        raise NotFoundError("User not found")
    return User(**row)


async def list_users() -> list[User]:
    return [User(**row) for row in await supabase_client.list_users()]


async def set_role(admin: RequestIdentity, uid: str, role: Any) -> User:
    """Admin promotes or demotes a user."""
    try:
        new_role = Role(role)
    except ValueError:
        raise ValidationError("role must be one of: user, agent, admin")
    if uid == admin.uid and new_role != Role.ADMIN:
        raise ConflictError("Admins cannot change their own role")

    await get_user(uid)
    row = await supabase_client.update_user(uid, {"role": new_role.value, "updated_at": utc_now_iso()})
    if not row:
        raise NotFoundError("User not found")
    logger.info("User role changed", uid=mask_user_id(uid), role=new_role.value)
    return User(**row)


async def mark_fraud(uid: str) -> tuple[User, int]:
    """Flag an agent as fraud and take their listings down. Returns the user and listings removed."""
    user = await get_user(uid)
    if user.role != Role.AGENT:
        raise ConflictError("Only agents can be marked as fraud")

    row = await supabase_client.update_user(uid, {"is_fraud": True, "updated_at": utc_now_iso()})
    if not row:
        raise NotFoundError("User not found")
    removed = await supabase_client.delete_properties_by_agent(uid)
    logger.warning("Agent marked as fraud", uid=mask_user_id(uid), properties_removed=removed)
    return User(**row), removed


async def delete_user(admin: RequestIdentity, uid: str) -> None:
    if uid == admin.uid:
        raise ConflictError("Admins cannot delete themselves")
    await get_user(uid)
    await supabase_client.delete_user(uid)
    logger.info("User deleted", uid=mask_user_id(uid))
