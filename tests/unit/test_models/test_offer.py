"""Tests for Offer and Review models."""

import pytest
from pydantic import ValidationError

from src.models.offer import Offer, OfferAction, OfferStatus
from src.models.review import Review


def base_offer(**overrides):
    data = {
        "offer_id": "01ARZ3NDEKTSV4RRFFQ69G5FAV",
        "property_id": "01ARZ3NDEKTSV4RRFFQ69G5FAW",
        "property_title": "Garden Flat",
        "agent_uid": "agent-1",
        "agent_email": "agent@example.com",
        "buyer_uid": "buyer-1",
        "buyer_email": "buyer@example.com",
        "offer_amount": 550000,
        "buying_date": "2025-01-15",
    }
    data.update(overrides)
    return data


@pytest.mark.unit
def test_offer_defaults_to_pending():
    offer = Offer(**base_offer())

    assert offer.status == OfferStatus.PENDING
    assert offer.transaction_id is None


@pytest.mark.unit
def test_offer_amount_must_be_positive():
    with pytest.raises(ValidationError):
        Offer(**base_offer(offer_amount=0))


@pytest.mark.unit
def test_offer_status_values():
    assert {status.value for status in OfferStatus} == {"pending", "accepted", "rejected", "bought"}
    assert OfferAction("accept") == OfferAction.ACCEPT
    with pytest.raises(ValueError):
        Offer(**base_offer(status="sold"))


@pytest.mark.unit
@pytest.mark.parametrize("rating", [0, 6])
def test_review_rating_bounds(rating):
    with pytest.raises(ValidationError):
        Review(
            review_id="r1",
            property_id="p1",
            reviewer_uid="u1",
            reviewer_email="u1@example.com",
            rating=rating,
            description="ok",
        )
