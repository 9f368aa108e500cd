"""Security-layer exceptions. Typed, no HTTP."""


class SecurityError(Exception):
    """Base for all security-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthorizationError(SecurityError):
    """Raised when the actor's role does not grant the action."""


class AuthenticationError(SecurityError):
    """Raised when no usable actor identity accompanies the request."""
