"""
Offer lifecycle - the state machine behind buying a property.

    pending --accept--> accepted --payment confirmed--> bought
    pending --reject--> rejected

Accepting an offer rejects every other offer on the same property, so at most
one offer per property can be accepted or bought. The first offer an agent
accepts wins; amount and recency play no part.
"""

from typing import Any

from src.models.offer import Offer, OfferAction, OfferStatus
from src.models.user import RequestIdentity, Role
from src.services import property_catalog, supabase_client
from src.services.role_gate import authorize, email_matches
from src.utils.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RpcUnavailableError,
    ValidationError,
)
from src.utils.logging import get_structured_logger, mask_email
from src.utils.timestamps import generate_id, utc_now_iso

logger = get_structured_logger(__name__)


def _parse_amount(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError("offerAmount must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("offerAmount must be a number")
    if amount <= 0:
        raise ValidationError("offerAmount must be positive")
    return amount


async def get_offer(offer_id: str) -> Offer:
    """Get an offer or raise NotFoundError."""
    if not offer_id or offer_id == "undefined":
        raise ValidationError("Invalid offer ID")
    row = await supabase_client.get_offer_by_id(offer_id)
    if not row:
        raise NotFoundError("Offer not found")
    return Offer(**row)


async def create_offer(buyer: RequestIdentity, property_id: str, offer_amount: Any, buying_date: str) -> Offer:
    """
    Make an offer on a property.

    Only the user role may buy. The amount must lie within the property's price
    range. Property and buyer display fields are copied onto the offer now.
    """
    authorize(buyer, [Role.USER])

    if not property_id:
        raise ValidationError("propertyId is required")
    if not buying_date:
        raise ValidationError("buyingDate is required")
    amount = _parse_amount(offer_amount)

    listing = await property_catalog.get_property(property_id)
    if listing.is_sold:
        raise ConflictError("Property has already been sold")
    if not listing.price_in_range(amount):
        raise ValidationError("Offer amount must be within the price range")

    now = utc_now_iso()
    row = {
        "offer_id": generate_id(),
        "property_id": listing.property_id,
        "property_title": listing.title,
        "property_location": listing.location,
        "property_image": listing.image_url,
        "agent_uid": listing.agent_uid,
        "agent_name": listing.agent_name,
        "agent_email": listing.agent_email,
        "buyer_uid": buyer.uid,
        "buyer_email": buyer.email,
        "buyer_name": buyer.display_name,
        "offer_amount": amount,
        "buying_date": str(buying_date),
        "status": OfferStatus.PENDING.value,
        "created_at": now,
        "updated_at": now,
    }
    created = await supabase_client.create_offer(row)
    logger.info(
        "Offer created",
        offer_id=row["offer_id"],
        property_id=listing.property_id,
        buyer=mask_email(buyer.email),
        offer_amount=amount,
    )
    return Offer(**created)


async def _accept(offer: Offer) -> Offer:
    """Accept offer and reject its siblings, atomically when the RPC is deployed."""
    try:
        accepted = await supabase_client.accept_offer_atomic(offer.offer_id)
    except RpcUnavailableError as e:
        logger.warning(
            "Atomic accept unavailable, falling back to two writes",
            offer_id=offer.offer_id,
            error=str(e),
        )
    else:
        if accepted is None:
            raise ConflictError("Offer already responded")
        return Offer(**accepted)

    now = utc_now_iso()
    accepted = await supabase_client.update_offer_if_status(
        offer.offer_id,
        OfferStatus.PENDING.value,
        {"status": OfferStatus.ACCEPTED.value, "updated_at": now},
    )
    if accepted is None:
        raise ConflictError("Offer already responded")
    rejected = await supabase_client.reject_sibling_offers(offer.property_id, offer.offer_id, now)
    logger.info(
        "Sibling offers rejected",
        offer_id=offer.offer_id,
        property_id=offer.property_id,
        rejected_count=len(rejected),
    )
    return Offer(**accepted)


async def respond_to_offer(agent: RequestIdentity, offer_id: str, action: Any) -> Offer:
    """
    Agent accepts or rejects a pending offer.

    The requester must be the agent recorded on the offer (matched by email).
    """
    try:
        offer_action = OfferAction(action)
    except ValueError:
        raise ValidationError("Invalid action")

    offer = await get_offer(offer_id)

    if not email_matches(agent, offer.agent_email):
        raise AuthorizationError("Not authorized")

    if offer.status != OfferStatus.PENDING:
        raise ConflictError("Offer already responded")

    if offer_action == OfferAction.ACCEPT:
        updated = await _accept(offer)
    else:
        row = await supabase_client.update_offer_if_status(
            offer.offer_id,
            OfferStatus.PENDING.value,
            {"status": OfferStatus.REJECTED.value, "updated_at": utc_now_iso()},
        )
        if row is None:
            raise ConflictError("Offer already responded")
        updated = Offer(**row)

    logger.info(
        "Offer responded",
        offer_id=offer.offer_id,
        action=offer_action.value,
        status=updated.status.value,
    )
    return updated


async def mark_bought(buyer: RequestIdentity, offer_id: str, transaction_id: str) -> Offer:
    """
    Terminal transition after a confirmed payment.

    Also marks the property sold. That second write is best effort: a failure
    is logged and never undoes the completed payment.
    """
    offer = await get_offer(offer_id)

    if offer.buyer_uid != buyer.uid:
        raise AuthorizationError("Not authorized")

    if offer.status != OfferStatus.ACCEPTED:
        raise ConflictError("Offer not accepted yet")

    now = utc_now_iso()
    row = await supabase_client.update_offer_if_status(
        offer.offer_id,
        OfferStatus.ACCEPTED.value,
        {
            "status": OfferStatus.BOUGHT.value,
            "transaction_id": transaction_id,
            "paid_at": now,
            "updated_at": now,
        },
    )
    if row is None:
        raise ConflictError("Offer not accepted yet")
    bought = Offer(**row)
    logger.info("Offer marked bought", offer_id=bought.offer_id, transaction_id=transaction_id)

    try:
        await property_catalog.mark_sold(bought.property_id, bought.buyer_email)
    except Exception as e:
        logger.error(
            "Error updating property status after sale",
            exc_info=True,
            offer_id=bought.offer_id,
            property_id=bought.property_id,
            error=str(e),
        )

    return bought


async def list_buyer_offers(buyer: RequestIdentity) -> list[Offer]:
    rows = await supabase_client.query_offers({"buyer_uid": buyer.uid})
    return [Offer(**row) for row in rows]


async def list_requested_offers(agent: RequestIdentity) -> list[Offer]:
    """Offers made on the agent's properties."""
    rows = await supabase_client.query_offers({"agent_uid": agent.uid})
    return [Offer(**row) for row in rows]


async def list_sold_offers(agent: RequestIdentity) -> list[Offer]:
    rows = await supabase_client.query_offers(
        {"agent_uid": agent.uid, "status": OfferStatus.BOUGHT.value}
    )
    return [Offer(**row) for row in rows]


async def total_sold_amount(agent: RequestIdentity) -> float:
    return sum(offer.offer_amount for offer in await list_sold_offers(agent))
