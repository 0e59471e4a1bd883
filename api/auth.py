"""Authentication endpoints for Vercel."""

from src.models.user import RequestIdentity
from src.services import identity, user_admin
from src.utils.http import ApiRequest, JsonRequestHandler, Route


class handler(JsonRequestHandler):
    """Vercel serverless function handler for /api/auth."""

    routes = (
        Route("POST", r"/api/auth/login", "login", public=True),
        Route("GET", r"/api/auth/me", "me"),
        Route("POST", r"/api/auth/logout", "logout", public=True),
    )

    async def login(self, request: ApiRequest):
        user = await identity.login(request.body.get("idToken"))
        return {"message": "Login successful", "user": user}

    async def me(self, request: ApiRequest):
        return {"user": await user_admin.get_user(request.identity.uid)}

    async def logout(self, request: ApiRequest):
        # Tokens live on the client; nothing to revoke server side
        return {"message": "Logout successful"}
