"""Offer models - a buyer's proposal to purchase a property."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class OfferStatus(str, Enum):
    """Offer lifecycle states.

    pending -> accepted | rejected; accepted -> bought.
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BOUGHT = "bought"


class OfferAction(str, Enum):
    """Agent responses to a pending offer."""
    ACCEPT = "accept"
    REJECT = "reject"


class Offer(BaseModel):
    """Offer record.

    property_* , agent_* and buyer_* display fields are point-in-time copies
    taken when the offer is created. Later edits to the property or the user
    do not flow back into existing offers.
    """
    offer_id: str = Field(..., description="Offer ID (text)")
    property_id: str = Field(..., description="Property ID (text FK)")
    property_title: str = Field(..., description="Property title snapshot")
    property_location: Optional[str] = Field(None, description="Property location snapshot")
    property_image: Optional[str] = Field(None, description="Property image snapshot")
    agent_uid: str = Field(..., description="Listing agent uid snapshot")
    agent_name: Optional[str] = Field(None, description="Listing agent name snapshot")
    agent_email: str = Field(..., description="Listing agent email snapshot")
    buyer_uid: str = Field(..., description="Buyer uid")
    buyer_email: str = Field(..., description="Buyer email snapshot")
    buyer_name: Optional[str] = Field(None, description="Buyer name snapshot")
    offer_amount: float = Field(..., gt=0, description="Requested amount")
    buying_date: str = Field(..., description="Requested closing date")
    status: OfferStatus = Field(default=OfferStatus.PENDING)
    transaction_id: Optional[str] = Field(None, description="Payment intent ID once bought")
    paid_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
