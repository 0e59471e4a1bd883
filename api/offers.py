"""Offer endpoints for Vercel."""

from src.models.user import Role
from src.services import offer_lifecycle
from src.utils.http import ApiRequest, JsonRequestHandler, Route

OFFER_ID = r"(?P<offer_id>[^/]+)"


class handler(JsonRequestHandler):
    """Vercel serverless function handler for /api/offers."""

    routes = (
        Route("POST", r"/api/offers", "make_offer", roles=(Role.USER,)),
        Route("GET", r"/api/offers/my-offers", "my_offers", roles=(Role.USER,)),
        Route("GET", r"/api/offers/requested", "requested_offers", roles=(Role.AGENT,)),
        Route("GET", r"/api/offers/sold", "sold_offers", roles=(Role.AGENT,)),
        Route("GET", r"/api/offers/total-sold", "total_sold", roles=(Role.AGENT,)),
        Route("POST", rf"/api/offers/{OFFER_ID}/respond", "respond", roles=(Role.AGENT,)),
    )

    async def make_offer(self, request: ApiRequest):
        body = request.body
        offer = await offer_lifecycle.create_offer(
            request.identity,
            body.get("propertyId"),
            body.get("offerAmount"),
            body.get("buyingDate"),
        )
        return 201, {"message": "Offer made successfully", "offer": offer}

    async def my_offers(self, request: ApiRequest):
        return await offer_lifecycle.list_buyer_offers(request.identity)

    async def requested_offers(self, request: ApiRequest):
        return await offer_lifecycle.list_requested_offers(request.identity)

    async def sold_offers(self, request: ApiRequest):
        return await offer_lifecycle.list_sold_offers(request.identity)

    async def total_sold(self, request: ApiRequest):
        return {"totalSoldAmount": await offer_lifecycle.total_sold_amount(request.identity)}

    async def respond(self, request: ApiRequest):
        action = request.body.get("action")
        offer = await offer_lifecycle.respond_to_offer(request.identity, request.params["offer_id"], action)
        message = "Offer accepted" if offer.status.value == "accepted" else "Offer rejected"
        return {"message": message, "offer": offer}
