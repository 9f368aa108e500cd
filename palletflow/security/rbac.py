"""Role-based access control. No FastAPI. The transition engine never calls this; entry points do, once."""

from palletflow.domain.models.actor import Actor, Role
from palletflow.security.exceptions import AuthorizationError

# Roles each role satisfies. Admins may do everything operators may.
_SATISFIES: dict[Role, frozenset[Role]] = {
    Role.ADMIN: frozenset({Role.ADMIN, Role.OPERATOR}),
    Role.OPERATOR: frozenset({Role.OPERATOR}),
}

# Permission matrix:
# Role      Scan  View  Create  Update  Delete
# ADMIN     ✓     ✓     ✓       ✓       ✓
# OPERATOR  ✓     ✓     ✗       ✗       ✗

_ACTION_REQUIRED_ROLE: dict[str, Role] = {
    "scan": Role.OPERATOR,
    "view": Role.OPERATOR,
    "create": Role.ADMIN,
    "update": Role.ADMIN,
    "delete": Role.ADMIN,
}


def has_capability(actor: Actor, required_role: Role) -> bool:
    """True if the actor's role satisfies required_role."""
    return required_role in _SATISFIES.get(actor.role, frozenset())


class RBACService:
    """Check permission for actor and action. Raise AuthorizationError if invalid."""

    def check_permission(self, actor: Actor, action: str) -> None:
        """Raises AuthorizationError if the actor may not perform action (unknown actions are denied)."""
        required = _ACTION_REQUIRED_ROLE.get(action)
        if required is None or not has_capability(actor, required):
            raise AuthorizationError(
                f"Role {actor.role.value} does not have permission for action '{action}'"
            )
