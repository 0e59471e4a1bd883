"""Review endpoints for Vercel."""

from src.models.user import Role
from src.services import review_store
from src.utils.http import ApiRequest, JsonRequestHandler, Route, query_int

ADMIN = (Role.ADMIN,)


class handler(JsonRequestHandler):
    """Vercel serverless function handler for /api/reviews."""

    routes = (
        Route("GET", r"/api/reviews/property/(?P<property_id>[^/]+)", "for_property", public=True),
        Route("GET", r"/api/reviews/latest", "latest", public=True),
        Route("POST", r"/api/reviews", "add", roles=(Role.USER,)),
        Route("GET", r"/api/reviews/my-reviews", "mine", roles=(Role.USER,)),
        Route("GET", r"/api/reviews", "list_all", roles=ADMIN),
        Route("GET", r"/api/reviews/admin/all", "list_all", roles=ADMIN),
        Route("DELETE", r"/api/reviews/(?P<review_id>[^/]+)", "delete"),
    )

    async def for_property(self, request: ApiRequest):
        return await review_store.list_property_reviews(request.params["property_id"])

    async def latest(self, request: ApiRequest):
        limit = query_int(request.query, "limit", review_store.LATEST_REVIEWS_LIMIT)
        return await review_store.list_latest_reviews(limit)

    async def add(self, request: ApiRequest):
        body = request.body
        review = await review_store.add_review(
            request.identity,
            body.get("propertyId"),
            body.get("rating"),
            body.get("description"),
        )
        return 201, {"message": "Review added successfully", "review": review}

    async def mine(self, request: ApiRequest):
        return await review_store.list_my_reviews(request.identity)

    async def list_all(self, request: ApiRequest):
        return await review_store.list_all_reviews()

    async def delete(self, request: ApiRequest):
        await review_store.delete_review(request.identity, request.params["review_id"])
        return {"message": "Review deleted successfully"}
