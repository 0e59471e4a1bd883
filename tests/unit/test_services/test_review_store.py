"""Tests for the review store."""

import pytest

from src.services import review_store
from src.utils.errors import AuthorizationError, NotFoundError, ValidationError
from tests.utils.factories import create_review_data, create_user_data, identity_for


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_review_snapshots_property(fake_supabase, buyer, listing_data):
    review = await review_store.add_review(buyer, listing_data["property_id"], 4, "  Lovely agent  ")

    assert review.rating == 4
    assert review.description == "Lovely agent"
    assert review.property_title == listing_data["title"]
    assert review.agent_name == listing_data["agent_name"]
    assert review.reviewer_uid == buyer.uid


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_review_unknown_property(fake_supabase, buyer):
    with pytest.raises(NotFoundError):
        await review_store.add_review(buyer, "missing", 5, "Great")


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6, 3.5, "five", None, True])
async def test_add_review_rating_bounds(fake_supabase, buyer, listing_data, rating):
    with pytest.raises(ValidationError):
        await review_store.add_review(buyer, listing_data["property_id"], rating, "Great")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_review_requires_description(fake_supabase, buyer, listing_data):
    with pytest.raises(ValidationError):
        await review_store.add_review(buyer, listing_data["property_id"], 5, "   ")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_latest_reviews_newest_first(fake_supabase, buyer_data, listing_data):
    for day in range(1, 6):
        fake_supabase.seed(
            "reviews",
            create_review_data(listing_data, buyer_data, created_at=f"2024-12-0{day}T00:00:00+00:00"),
        )

    latest = await review_store.list_latest_reviews()

    assert [r.created_at[:10] for r in latest] == ["2024-12-05", "2024-12-04", "2024-12-03"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_property_and_my_reviews(fake_supabase, buyer, buyer_data, listing_data):
    other = create_user_data()
    mine = create_review_data(listing_data, buyer_data)
    fake_supabase.seed("reviews", mine, create_review_data(listing_data, other))

    assert len(await review_store.list_property_reviews(listing_data["property_id"])) == 2
    assert [r.review_id for r in await review_store.list_my_reviews(buyer)] == [mine["review_id"]]
    assert len(await review_store.list_all_reviews()) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_review_owner_or_admin(fake_supabase, buyer, buyer_data, admin, listing_data):
    own = create_review_data(listing_data, buyer_data)
    someone_elses = create_review_data(listing_data, create_user_data())
    fake_supabase.seed("reviews", own, someone_elses)

    await review_store.delete_review(buyer, own["review_id"])
    with pytest.raises(AuthorizationError):
        await review_store.delete_review(buyer, someone_elses["review_id"])
    await review_store.delete_review(admin, someone_elses["review_id"])

    assert fake_supabase.rows("reviews") == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_review_missing(fake_supabase, buyer):
    with pytest.raises(NotFoundError):
        await review_store.delete_review(buyer, "missing")
