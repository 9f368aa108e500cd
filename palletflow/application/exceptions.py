"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConcurrencyConflictError(ApplicationError):
    """
    Raised when a competing transaction won the pallet row (lock error or stale version).
    Retried internally; reaches callers only once the retry budget is exhausted.
    """

    def __init__(self, message: str, attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(message)


class StorageFailureError(ApplicationError):
    """Raised when persistence is unavailable or a write fails. The unit of work was rolled back."""
