"""User model - people known to the marketplace (buyers, agents, admins)."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Marketplace roles."""
    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"


class User(BaseModel):
    """User record keyed by the identity provider uid."""
    uid: str = Field(..., description="Identity provider user ID")
    email: str = Field(..., description="Email address")
    display_name: str = Field(..., description="Display name")
    photo_url: Optional[str] = Field(None, description="Avatar URL")
    role: Role = Field(default=Role.USER, description="Role: user, agent, admin")
    verification_status: str = Field(default="verified", description="Account verification status")
    is_fraud: bool = Field(default=False, description="Agent flagged as fraudulent by an admin")
    created_at: Optional[str] = None
    last_login_at: Optional[str] = None
    updated_at: Optional[str] = None


class RequestIdentity(BaseModel):
    """Resolved identity attached to an authenticated request."""
    uid: str
    email: str
    display_name: str
    photo_url: Optional[str] = None
    role: Role = Role.USER
    is_fraud: bool = False

    @classmethod
    def from_user(cls, user: User) -> "RequestIdentity":
        return cls(
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            role=user.role,
            is_fraud=user.is_fraud,
        )
