"""Review store - create, list and delete property reviews."""

from typing import Any, Optional

from src.models.review import Review
from src.models.user import RequestIdentity
from src.services import property_catalog, supabase_client
from src.services.role_gate import is_owner_or_admin
from src.utils.errors import AuthorizationError, NotFoundError, ValidationError
from src.utils.logging import get_structured_logger
from src.utils.timestamps import generate_id, utc_now_iso

logger = get_structured_logger(__name__)

LATEST_REVIEWS_LIMIT = 3


def _parse_rating(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("rating must be an integer between 1 and 5")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError("rating must be an integer between 1 and 5")
    return value


async def add_review(reviewer: RequestIdentity, property_id: Optional[str], rating: Any, description: Optional[str]) -> Review:
    """Add a review. Property title and agent name are copied at review time."""
    if not property_id:
        raise ValidationError("propertyId is required")
    if not description or not str(description).strip():
        raise ValidationError("description is required")
    stars = _parse_rating(rating)

    listing = await property_catalog.get_property(property_id)

    row = {
        "review_id": generate_id(),
        "property_id": listing.property_id,
        "property_title": listing.title,
        "agent_name": listing.agent_name,
        "reviewer_uid": reviewer.uid,
        "reviewer_email": reviewer.email,
        "reviewer_name": reviewer.display_name,
        "reviewer_photo": reviewer.photo_url,
        "rating": stars,
        "description": str(description).strip(),
        "created_at": utc_now_iso(),
    }
    created = await supabase_client.create_review(row)
    logger.info("Review added", review_id=row["review_id"], property_id=listing.property_id, rating=stars)
    return Review(**created)


async def list_property_reviews(property_id: str) -> list[Review]:
    rows = await supabase_client.query_reviews({"property_id": property_id})
    return [Review(**row) for row in rows]


async def list_latest_reviews(limit: int = LATEST_REVIEWS_LIMIT) -> list[Review]:
    rows = await supabase_client.query_reviews(limit=limit)
    return [Review(**row) for row in rows]


async def list_my_reviews(reviewer: RequestIdentity) -> list[Review]:
    rows = await supabase_client.query_reviews({"reviewer_uid": reviewer.uid})
    return [Review(**row) for row in rows]


async def list_all_reviews() -> list[Review]:
    rows = await supabase_client.query_reviews()
    return [Review(**row) for row in rows]


async def delete_review(identity: RequestIdentity, review_id: str) -> None:
    """Delete a review. Reviewers delete their own, admins delete any."""
    row = await supabase_client.get_review_by_id(review_id)
    if not row:
        raise NotFoundError("Review not found")
    if not is_owner_or_admin(identity, row.get("reviewer_uid")):
        raise AuthorizationError("You can only delete your own reviews")
    await supabase_client.delete_review(review_id)
    logger.info("Review deleted", review_id=review_id, by_role=identity.role.value)
