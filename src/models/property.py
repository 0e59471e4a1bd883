"""Property models - listings published by agents."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class VerificationStatus(str, Enum):
    """Admin-assigned trust flag."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class AvailabilityStatus(str, Enum):
    """Availability, independent of verification."""
    ACTIVE = "active"
    SOLD = "sold"


class Property(BaseModel):
    """Real estate listing.

    agent_name / agent_email are copied from the agent's profile when the
    listing is created and are not kept in sync afterwards.
    """
    property_id: str = Field(..., description="Property ID (text)")
    title: str = Field(..., min_length=1, description="Listing title")
    location: str = Field(..., min_length=1, description="Location string")
    description: Optional[str] = Field(None, description="Free text description")
    image_url: Optional[str] = Field(None, description="Cover image URL")
    price_min: float = Field(..., ge=0, description="Lower bound of the price range")
    price_max: float = Field(..., ge=0, description="Upper bound of the price range")
    agent_uid: str = Field(..., description="Owning agent uid")
    agent_name: Optional[str] = Field(None, description="Agent display name at listing time")
    agent_email: str = Field(..., description="Agent email at listing time")
    agent_photo: Optional[str] = None
    verification_status: VerificationStatus = Field(default=VerificationStatus.PENDING)
    is_advertised: bool = Field(default=False, description="Featured on the homepage")
    status: AvailabilityStatus = Field(default=AvailabilityStatus.ACTIVE)
    sold_at: Optional[str] = None
    sold_to: Optional[str] = Field(None, description="Buyer email once sold")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @model_validator(mode="after")
    def check_price_range(self) -> "Property":
        if self.price_min > self.price_max:
            raise ValueError("price_min must not exceed price_max")
        return self

    def price_in_range(self, amount: float) -> bool:
        """True when amount lies within [price_min, price_max]."""
        return self.price_min <= amount <= self.price_max

    @property
    def is_sold(self) -> bool:
        return self.status == AvailabilityStatus.SOLD
