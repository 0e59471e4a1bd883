"""Supabase client wrapper with async context manager support."""

import os
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from postgrest.exceptions import APIError
from src.utils.errors import RpcUnavailableError, SupabaseError
import logging

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

# PostgREST error code for an unknown function
MISSING_FUNCTION_CODE = "PGRST202"


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def _first(result) -> Optional[dict]:
    return result.data[0] if result.data and len(result.data) > 0 else None


# Users table operations
async def get_user_by_uid(uid: str) -> Optional[dict]:
    """Get user by identity provider uid."""
    async with SupabaseClient() as client:
        try:
            result = client.table("users").select("*").eq("uid", uid).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get user: {e}")
        return _first(result)


async def create_user(user_data: dict) -> dict:
    """Create a new user record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("users").insert(user_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create user: {e}")
        user = _first(result)
        if user is None:
            raise SupabaseError("Failed to create user: no data returned")
        return user


async def update_user(uid: str, updates: dict) -> Optional[dict]:
    """Update a user record. Returns None when no user matched."""
    async with SupabaseClient() as client:
        try:
            result = client.table("users").update(updates).eq("uid", uid).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update user: {e}")
        return _first(result)


async def list_users() -> list[dict]:
    """Get all users, newest first."""
    async with SupabaseClient() as client:
        try:
            result = client.table("users").select("*").order("created_at", desc=True).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to list users: {e}")
        return result.data if result.data else []


async def delete_user(uid: str) -> bool:
    """Delete a user record."""
    async with SupabaseClient() as client:
        try:
            result = client.table("users").delete().eq("uid", uid).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete user: {e}")
        return bool(result.data)


# Properties table operations
async def create_property(property_data: dict) -> dict:
    """Create a new property listing."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").insert(property_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create property: {e}")
        row = _first(result)
        if row is None:
            raise SupabaseError("Failed to create property: no data returned")
        return row


async def get_property_by_id(property_id: str) -> Optional[dict]:
    """Get property by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").select("*").eq("property_id", property_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get property: {e}")
        return _first(result)


async def query_properties(
    filters: Optional[dict[str, Any]] = None,
    exclude: Optional[dict[str, Any]] = None,
    location_contains: Optional[str] = None,
    order_by: str = "created_at",
    descending: bool = True,
    limit: Optional[int] = None,
) -> list[dict]:
    """Query properties with equality filters, exclusions and an optional location search."""
    async with SupabaseClient() as client:
        try:
            query = client.table("properties").select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            for column, value in (exclude or {}).items():
                query = query.neq(column, value)
            if location_contains:
                query = query.ilike("location", f"%{location_contains}%")
            query = query.order(order_by, desc=descending)
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to query properties: {e}")
        return result.data if result.data else []


async def update_property(property_id: str, updates: dict) -> Optional[dict]:
    """Update a property. Returns None when no property matched."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").update(updates).eq("property_id", property_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update property: {e}")
        return _first(result)


async def delete_property(property_id: str) -> bool:
    """Delete a property."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").delete().eq("property_id", property_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete property: {e}")
        return bool(result.data)


async def delete_properties_by_agent(agent_uid: str) -> int:
    """Delete every property listed by an agent. Returns the number removed."""
    async with SupabaseClient() as client:
        try:
            result = client.table("properties").delete().eq("agent_uid", agent_uid).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete agent properties: {e}")
        return len(result.data) if result.data else 0


# Offers table operations
async def create_offer(offer_data: dict) -> dict:
    """Create a new offer."""
    async with SupabaseClient() as client:
        try:
            result = client.table("offers").insert(offer_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create offer: {e}")
        row = _first(result)
        if row is None:
            raise SupabaseError("Failed to create offer: no data returned")
        return row


async def get_offer_by_id(offer_id: str) -> Optional[dict]:
    """Get offer by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("offers").select("*").eq("offer_id", offer_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get offer: {e}")
        return _first(result)


async def query_offers(filters: dict[str, Any]) -> list[dict]:
    """Get offers matching every equality filter, newest first."""
    async with SupabaseClient() as client:
        try:
            query = client.table("offers").select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            result = query.order("created_at", desc=True).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to query offers: {e}")
        return result.data if result.data else []


async def update_offer_if_status(offer_id: str, expected_status: str, updates: dict) -> Optional[dict]:
    """Update an offer only while it still holds expected_status.

    Returns the updated row, or None when the offer is missing or has moved on.
    """
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("offers")
                .update(updates)
                .eq("offer_id", offer_id)
                .eq("status", expected_status)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to update offer: {e}")
        return _first(result)


async def reject_sibling_offers(property_id: str, exclude_offer_id: str, updated_at: str) -> list[dict]:
    """Set every other offer on a property to rejected."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("offers")
                .update({"status": "rejected", "updated_at": updated_at})
                .eq("property_id", property_id)
                .neq("offer_id", exclude_offer_id)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to reject sibling offers: {e}")
        return result.data if result.data else []


async def accept_offer_atomic(offer_id: str) -> Optional[dict]:
    """Accept an offer and reject its siblings in one database transaction.

    Calls the accept_offer Postgres function. Returns the accepted row, or None
    when the offer was no longer pending. Raises RpcUnavailableError when the
    function is not deployed and SupabaseError for any other failure.
    """
    rpc_name = os.environ.get("ACCEPT_OFFER_RPC", "accept_offer")
    result = None
    async with SupabaseClient() as client:
        try:
            result = client.rpc(rpc_name, {"target_offer_id": offer_id}).execute()
        except APIError as e:
            if e.code != MISSING_FUNCTION_CODE:
                raise SupabaseError(f"Failed to accept offer: {e}")
        except Exception as e:
            raise SupabaseError(f"Failed to accept offer: {e}")
    if result is None:
        raise RpcUnavailableError(f"Database function {rpc_name} is not deployed")
    return _first(result)


# Reviews table operations
async def create_review(review_data: dict) -> dict:
    """Create a new review."""
    async with SupabaseClient() as client:
        try:
            result = client.table("reviews").insert(review_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create review: {e}")
        row = _first(result)
        if row is None:
            raise SupabaseError("Failed to create review: no data returned")
        return row


async def get_review_by_id(review_id: str) -> Optional[dict]:
    """Get review by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("reviews").select("*").eq("review_id", review_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get review: {e}")
        return _first(result)


async def query_reviews(filters: Optional[dict[str, Any]] = None, limit: Optional[int] = None) -> list[dict]:
    """Get reviews matching the equality filters, newest first."""
    async with SupabaseClient() as client:
        try:
            query = client.table("reviews").select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            query = query.order("created_at", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to query reviews: {e}")
        return result.data if result.data else []


async def delete_review(review_id: str) -> bool:
    """Delete a review."""
    async with SupabaseClient() as client:
        try:
            result = client.table("reviews").delete().eq("review_id", review_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete review: {e}")
        return bool(result.data)
