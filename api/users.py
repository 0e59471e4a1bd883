"""User profile and admin user management endpoints for Vercel."""

from src.models.user import Role
from src.services import user_admin
from src.utils.http import ApiRequest, JsonRequestHandler, Route

UID = r"(?P<uid>[^/]+)"
ADMIN = (Role.ADMIN,)


class handler(JsonRequestHandler):
    """Vercel serverless function handler for /api/users."""

    routes = (
        Route("PATCH", r"/api/users/me", "update_me"),
        Route("GET", r"/api/users", "list_users", roles=ADMIN),
        Route("PATCH", rf"/api/users/{UID}/role", "set_role", roles=ADMIN),
        Route("PATCH", rf"/api/users/{UID}/fraud", "mark_fraud", roles=ADMIN),
        Route("DELETE", rf"/api/users/{UID}", "delete_user", roles=ADMIN),
    )

    async def update_me(self, request: ApiRequest):
        return {"user": await user_admin.update_profile(request.identity, request.body)}

    async def list_users(self, request: ApiRequest):
        return await user_admin.list_users()

    async def set_role(self, request: ApiRequest):
        user = await user_admin.set_role(request.identity, request.params["uid"], request.body.get("role"))
        return {"message": "Role updated", "user": user}

    async def mark_fraud(self, request: ApiRequest):
        user, removed = await user_admin.mark_fraud(request.params["uid"])
        return {"message": "Agent marked as fraud", "user": user, "propertiesRemoved": removed}

    async def delete_user(self, request: ApiRequest):
        await user_admin.delete_user(request.identity, request.params["uid"])
        return {"message": "User deleted"}
