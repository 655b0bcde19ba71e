"""
Exception hierarchy for auth_retry.

Admission errors (AdapterNotRegisteredError, QueueOverflowError) are raised
synchronously to the caller of on_401(). Refresh errors reach callers only
through the futures they await.
"""


class AuthRetryError(Exception):
    """
    Base exception for auth_retry errors.

    Attributes:
        message: Human-readable error description
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class AdapterNotRegisteredError(AuthRetryError):
    """on_401() was called before any adapter was registered."""

    def __init__(self, message: str = "Adapter not registered"):
        super().__init__(message)


class QueueOverflowError(AuthRetryError, OverflowError):
    """Waiter queue is full; the caller was not admitted."""

    def __init__(self, max_size: int):
        super().__init__(
            f"Queue overflow: maximum size of {max_size} exceeded",
            context={"max_queue_size": max_size},
        )
        self.max_size = max_size


class RefreshFailedError(AuthRetryError):
    """Refresh completed without producing a credential."""

    def __init__(self, message: str = "Token refresh failed"):
        super().__init__(message)


class TokenRefreshError(AuthRetryError):
    """Refresh request to the token endpoint failed."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause, context={"http_status": status})
        self.status = status


class InvalidConfigurationError(AuthRetryError, ValueError):
    """Configuration value is invalid."""

    pass


__all__ = [
    "AuthRetryError",
    "AdapterNotRegisteredError",
    "QueueOverflowError",
    "RefreshFailedError",
    "TokenRefreshError",
    "InvalidConfigurationError",
]
