"""Property catalog - listings, admin verification/advertising and the sold transition."""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from src.models.property import AvailabilityStatus, Property, VerificationStatus
from src.models.user import RequestIdentity
from src.services import supabase_client
from src.services.role_gate import is_owner_or_admin
from src.utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.utils.logging import get_structured_logger, mask_email
from src.utils.timestamps import generate_id, utc_now_iso

logger = get_structured_logger(__name__)

EDITABLE_FIELDS = ("title", "location", "description", "image_url", "price_min", "price_max")


def _parse_price(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if price < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return price


def _build_property(row: dict) -> Property:
    try:
        return Property(**row)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid property data: {e.errors()[0]['msg']}")


async def get_property(property_id: str) -> Property:
    """Get a property or raise NotFoundError."""
    row = await supabase_client.get_property_by_id(property_id)
    if not row:
        raise NotFoundError("Property not found")
    return Property(**row)


async def create_property(agent: RequestIdentity, data: dict) -> Property:
    """Create a listing owned by the requesting agent. New listings await admin verification."""
    if agent.is_fraud:
        raise AuthorizationError("Agents marked as fraud cannot add properties", code="AGENT_FRAUD")

    for required in ("title", "location", "price_min", "price_max"):
        if data.get(required) in (None, ""):
            raise ValidationError(f"{required} is required")

    now = utc_now_iso()
    row = {
        "property_id": generate_id(),
        "title": str(data["title"]).strip(),
        "location": str(data["location"]).strip(),
        "description": data.get("description"),
        "image_url": data.get("image_url"),
        "price_min": _parse_price(data["price_min"], "price_min"),
        "price_max": _parse_price(data["price_max"], "price_max"),
        "agent_uid": agent.uid,
        "agent_name": agent.display_name,
        "agent_email": agent.email,
        "agent_photo": agent.photo_url,
        "verification_status": VerificationStatus.PENDING.value,
        "is_advertised": False,
        "status": AvailabilityStatus.ACTIVE.value,
        "created_at": now,
        "updated_at": now,
    }
    # Validates the price range before anything is written
    _build_property(row)

    created = await supabase_client.create_property(row)
    logger.info("Property created", property_id=row["property_id"], agent=mask_email(agent.email))
    return Property(**created)


async def list_public_properties(search: Optional[str] = None, sort: Optional[str] = None) -> list[Property]:
    """Verified, unsold listings with an optional location search and price sort."""
    if sort and sort not in ("asc", "desc"):
        raise ValidationError("sort must be 'asc' or 'desc'")

    rows = await supabase_client.query_properties(
        filters={"verification_status": VerificationStatus.VERIFIED.value},
        exclude={"status": AvailabilityStatus.SOLD.value},
        location_contains=search.strip() if search else None,
        order_by="price_min" if sort else "created_at",
        descending=(sort == "desc") if sort else True,
    )
    return [Property(**row) for row in rows]


async def list_advertised_properties(limit: Optional[int] = None) -> list[Property]:
    """Homepage listings: verified, advertised and unsold, newest first."""
    rows = await supabase_client.query_properties(
        filters={
            "verification_status": VerificationStatus.VERIFIED.value,
            "is_advertised": True,
        },
        exclude={"status": AvailabilityStatus.SOLD.value},
        limit=limit,
    )
    return [Property(**row) for row in rows]


async def list_agent_properties(agent: RequestIdentity) -> list[Property]:
    rows = await supabase_client.query_properties(filters={"agent_uid": agent.uid})
    return [Property(**row) for row in rows]


async def list_all_properties() -> list[Property]:
    rows = await supabase_client.query_properties()
    return [Property(**row) for row in rows]


async def update_property(agent: RequestIdentity, property_id: str, data: dict) -> Property:
    """Edit a listing. Only the owning agent may edit, and rejected listings are frozen."""
    current = await get_property(property_id)
    if current.agent_uid != agent.uid:
        raise AuthorizationError("You can only update your own properties")
    if current.verification_status == VerificationStatus.REJECTED:
        raise ConflictError("Rejected properties cannot be updated")

    updates = {key: data[key] for key in EDITABLE_FIELDS if key in data}
    if not updates:
        raise ValidationError("No fields to update")
    for key in ("price_min", "price_max"):
        if key in updates:
            updates[key] = _parse_price(updates[key], key)

    _build_property({**current.model_dump(mode="json"), **updates})

    updates["updated_at"] = utc_now_iso()
    row = await supabase_client.update_property(property_id, updates)
    if not row:
        raise NotFoundError("Property not found")
    return Property(**row)


async def delete_property(identity: RequestIdentity, property_id: str) -> None:
    """Delete a listing (owning agent or admin)."""
    current = await get_property(property_id)
    if not is_owner_or_admin(identity, current.agent_uid):
        raise AuthorizationError("You can only delete your own properties")
    await supabase_client.delete_property(property_id)
    logger.info("Property deleted", property_id=property_id, by_role=identity.role.value)


async def set_verification_status(property_id: str, status: str) -> Property:
    """Admin verifies or rejects a listing."""
    try:
        new_status = VerificationStatus(status)
    except ValueError:
        raise ValidationError("status must be 'verified' or 'rejected'")
    if new_status == VerificationStatus.PENDING:
        raise ValidationError("status must be 'verified' or 'rejected'")

    await get_property(property_id)
    updates = {"verification_status": new_status.value, "updated_at": utc_now_iso()}
    # A rejected listing can no longer be featured
    if new_status == VerificationStatus.REJECTED:
        updates["is_advertised"] = False

    row = await supabase_client.update_property(property_id, updates)
    if not row:
        raise NotFoundError("Property not found")
    logger.info("Property verification updated", property_id=property_id, status=new_status.value)
    return Property(**row)


async def set_advertised(property_id: str, is_advertised: bool) -> Property:
    """Admin toggles homepage featuring. Only verified listings can be advertised."""
    if not isinstance(is_advertised, bool):
        raise ValidationError("isAdvertised must be a boolean")

    current = await get_property(property_id)
    if is_advertised and current.verification_status != VerificationStatus.VERIFIED:
        raise ConflictError("Only verified properties can be advertised")

    row = await supabase_client.update_property(
        property_id, {"is_advertised": is_advertised, "updated_at": utc_now_iso()}
    )
    if not row:
        raise NotFoundError("Property not found")
    return Property(**row)


async def mark_sold(property_id: str, buyer_email: str) -> Property:
    """Transition a listing to sold. Used after a confirmed payment."""
    now = utc_now_iso()
    row = await supabase_client.update_property(
        property_id,
        {
            "status": AvailabilityStatus.SOLD.value,
            "sold_at": now,
            "sold_to": buyer_email,
            "updated_at": now,
        },
    )
    if not row:
        raise NotFoundError("Property not found")
    logger.info("Property marked sold", property_id=property_id, buyer=mask_email(buyer_email))
    return Property(**row)

