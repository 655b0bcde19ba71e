"""Convenience constructor bundling a coordinator with its adapter."""

import asyncio
import logging
from typing import Any

from auth_retry.config import AuthRetryConfig
from auth_retry.coordinator import RefreshCoordinator
from auth_retry.logging.setup import setup_logging_from_config
from auth_retry.queue import DEFAULT_MAX_QUEUE_SIZE
from auth_retry.types import ClassifierLike, CredentialAdapter

logger = logging.getLogger(__name__)


class AuthRetry:
    """
    Handle returned by create_auth_retry().

    Exposes the three operations an HTTP interceptor needs, plus the
    coordinator's read-only state.
    """

    def __init__(self, coordinator: RefreshCoordinator):
        self.coordinator = coordinator

    def on_401(self, error: Any = None) -> "asyncio.Future[bool]":
        """Report an auth failure; await the result before retrying."""
        return self.coordinator.on_401(error)

    def is_auth_error(self, error: Any) -> bool:
        return self.coordinator.is_auth_error(error)

    def update_adapter(self, adapter: CredentialAdapter) -> None:
        """Swap the adapter at runtime."""
        self.coordinator.register_adapter(adapter)

    @property
    def refreshing(self) -> bool:
        return self.coordinator.refreshing

    @property
    def queue_size(self) -> int:
        return self.coordinator.queue_size


def create_auth_retry(
    adapter: CredentialAdapter,
    error_classifier: ClassifierLike | None = None,
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
    config: AuthRetryConfig | None = None,
) -> AuthRetry:
    """
    Create a coordinator, register the adapter and wrap both in AuthRetry.

    Args:
        adapter: Credential adapter performing refresh/apply/logout
        error_classifier: Optional predicate replacing the default 401 checks
        max_queue_size: Maximum waiting callers; ignored when config is given
        config: Optional AuthRetryConfig supplying name and max_queue_size;
            its log_level and json_logs configure the auth_retry logger

    Returns:
        AuthRetry handle

    Example:
        auth = create_auth_retry(
            adapter=OAuth2RefreshAdapter(oauth_config, refresh_token=stored),
            error_classifier=lambda e: getattr(e, "status", None) in (401, 419),
        )

        # In the request path
        if auth.is_auth_error(error):
            await auth.on_401(error)
            ...  # re-issue the request
    """
    if config is not None:
        setup_logging_from_config(config)
        coordinator = RefreshCoordinator.from_config(config, error_classifier=error_classifier)
    else:
        coordinator = RefreshCoordinator(
            error_classifier=error_classifier,
            max_queue_size=max_queue_size,
        )
    coordinator.register_adapter(adapter)
    return AuthRetry(coordinator)


__all__ = ["AuthRetry", "create_auth_retry"]
