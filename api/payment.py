"""Payment endpoints for Vercel."""

from src.models.user import Role
from src.services import payment_bridge
from src.utils.http import ApiRequest, JsonRequestHandler, Route


class handler(JsonRequestHandler):
    """Vercel serverless function handler for /api/payment."""

    routes = (
        Route("GET", r"/api/payment/config", "config", public=True),
        Route("POST", r"/api/payment/create-payment-intent", "create_intent", roles=(Role.USER,)),
        Route("POST", r"/api/payment/confirm-payment", "confirm", roles=(Role.USER,)),
    )

    async def config(self, request: ApiRequest):
        return payment_bridge.payment_config()

    async def create_intent(self, request: ApiRequest):
        return await payment_bridge.create_payment_intent(
            request.identity,
            request.body.get("offerId"),
            request.body.get("amount"),
        )

    async def confirm(self, request: ApiRequest):
        offer = await payment_bridge.confirm_payment(
            request.identity,
            request.body.get("paymentIntentId"),
            request.body.get("offerId"),
        )
        return {
            "success": True,
            "message": "Payment confirmed and offer updated",
            "offer": offer,
        }
