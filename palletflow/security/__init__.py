"""Security: RBAC and actor capability checks. No FastAPI."""

from palletflow.domain.models.actor import Actor, Role
from palletflow.security.exceptions import AuthenticationError, AuthorizationError, SecurityError
from palletflow.security.rbac import RBACService, has_capability

__all__ = [
    "Actor",
    "AuthenticationError",
    "AuthorizationError",
    "RBACService",
    "Role",
    "SecurityError",
    "has_capability",
]
