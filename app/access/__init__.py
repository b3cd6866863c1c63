from app.access.errors import AccessDeniedError, AccessError, AuthenticationRequiredError
from app.access.policy import Action, Actor, Resource, authorize, is_allowed

__all__ = [
    "AccessDeniedError",
    "AccessError",
    "Action",
    "Actor",
    "AuthenticationRequiredError",
    "Resource",
    "authorize",
    "is_allowed",
]
