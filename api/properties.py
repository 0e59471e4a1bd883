"""Property catalog endpoints for Vercel."""

from src.models.user import Role
from src.services import property_catalog
from src.utils.http import ApiRequest, JsonRequestHandler, Route, query_int

PROPERTY_ID = r"(?P<property_id>[^/]+)"
ADMIN = (Role.ADMIN,)


class handler(JsonRequestHandler):
    """Vercel serverless function handler for /api/properties."""

    routes = (
        Route("GET", r"/api/properties", "list_public", public=True),
        Route("GET", r"/api/properties/advertisements", "advertisements", public=True),
        Route("GET", r"/api/properties/agent/my-properties", "my_properties", roles=(Role.AGENT,)),
        Route("GET", r"/api/properties/admin/all", "list_all", roles=ADMIN),
        Route("POST", r"/api/properties", "create", roles=(Role.AGENT,)),
        Route("GET", rf"/api/properties/{PROPERTY_ID}", "detail"),
        Route("PATCH", rf"/api/properties/{PROPERTY_ID}", "update", roles=(Role.AGENT,)),
        Route("DELETE", rf"/api/properties/{PROPERTY_ID}", "delete", roles=(Role.AGENT, Role.ADMIN)),
        Route("PATCH", rf"/api/properties/{PROPERTY_ID}/verify", "verify", roles=ADMIN),
        Route("PATCH", rf"/api/properties/{PROPERTY_ID}/advertise", "advertise", roles=ADMIN),
    )

    async def list_public(self, request: ApiRequest):
        return await property_catalog.list_public_properties(
            search=request.query.get("search"),
            sort=request.query.get("sort"),
        )

    async def advertisements(self, request: ApiRequest):
        return await property_catalog.list_advertised_properties(limit=query_int(request.query, "limit"))

    async def my_properties(self, request: ApiRequest):
        return await property_catalog.list_agent_properties(request.identity)

    async def list_all(self, request: ApiRequest):
        return await property_catalog.list_all_properties()

    async def create(self, request: ApiRequest):
        listing = await property_catalog.create_property(request.identity, request.body)
        return 201, {"message": "Property added successfully", "property": listing}

    async def detail(self, request: ApiRequest):
        return await property_catalog.get_property(request.params["property_id"])

    async def update(self, request: ApiRequest):
        listing = await property_catalog.update_property(
            request.identity, request.params["property_id"], request.body
        )
        return {"message": "Property updated", "property": listing}

    async def delete(self, request: ApiRequest):
        await property_catalog.delete_property(request.identity, request.params["property_id"])
        return {"message": "Property deleted"}

    async def verify(self, request: ApiRequest):
        listing = await property_catalog.set_verification_status(
            request.params["property_id"], request.body.get("status")
        )
        return {"message": f"Property {listing.verification_status.value}", "property": listing}

    async def advertise(self, request: ApiRequest):
        listing = await property_catalog.set_advertised(
            request.params["property_id"], request.body.get("isAdvertised", True)
        )
        return {"message": "Advertisement updated", "property": listing}
