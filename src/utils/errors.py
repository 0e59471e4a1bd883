"""Error handling utilities."""

from typing import Optional


class EstateHubError(Exception):
    """Base exception for EstateHub backend."""
    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class AuthenticationError(EstateHubError):
    """Missing, invalid or expired credential."""
    status_code = 401
    default_code = "UNAUTHORIZED"


class AuthorizationError(EstateHubError):
    """Wrong role or not the owner of the resource."""
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(EstateHubError):
    """Requested record does not exist."""
    status_code = 404
    default_code = "NOT_FOUND"


class ValidationError(EstateHubError):
    """Bad input."""
    status_code = 400
    default_code = "VALIDATION_ERROR"


class ConflictError(EstateHubError):
    """Record is not in the state the operation expects."""
    status_code = 400
    default_code = "CONFLICT"


class PaymentIncompleteError(EstateHubError):
    """Payment intent has not succeeded."""
    status_code = 400
    default_code = "PAYMENT_INCOMPLETE"


class ServiceNotConfiguredError(EstateHubError):
    """An external service is missing its credentials."""
    status_code = 503
    default_code = "SERVICE_NOT_CONFIGURED"


class PaymentProviderError(EstateHubError):
    """Stripe call failed."""
    status_code = 500
    default_code = "PAYMENT_PROVIDER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, code)
        if status_code:
            self.status_code = status_code


class SupabaseError(EstateHubError):
    """Supabase operation error."""
    status_code = 500
    default_code = "DATABASE_ERROR"


class MethodNotAllowedError(EstateHubError):
    """Path exists but not for this HTTP method."""
    status_code = 405
    default_code = "METHOD_NOT_ALLOWED"


class RpcUnavailableError(SupabaseError):
    """Database function is not deployed."""
    default_code = "RPC_UNAVAILABLE"
