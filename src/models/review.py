"""Review model."""

from typing import Optional
from pydantic import BaseModel, Field


class Review(BaseModel):
    """User review of a property and its agent.

    property_title, agent_name and reviewer_* are copies taken at review time.
    """
    review_id: str = Field(..., description="Review ID (text)")
    property_id: str = Field(..., description="Property ID (text FK)")
    property_title: Optional[str] = None
    agent_name: Optional[str] = None
    reviewer_uid: str = Field(..., description="Reviewer uid")
    reviewer_email: str
    reviewer_name: Optional[str] = None
    reviewer_photo: Optional[str] = None
    rating: int = Field(..., ge=1, le=5, description="Star rating (1-5)")
    description: str = Field(..., min_length=1, description="Review body")
    created_at: Optional[str] = None
