"""
Single-flight credential refresh for concurrent auth failures.

When many in-flight requests fail with 401 at once, exactly one refresh
runs; every caller waits on it and is released (or rejected) together.

Basic Usage:
    from auth_retry import create_auth_retry

    class Adapter:
        async def refresh_token(self):
            return await fetch_new_token()

        def apply_token(self, token):
            session_headers["Authorization"] = f"Bearer {token}"

        def logout(self):
            session_headers.pop("Authorization", None)

    auth = create_auth_retry(Adapter())

    try:
        response = await send(request)
    except Exception as e:
        if not auth.is_auth_error(e):
            raise
        await auth.on_401(e)
        response = await send(request)

OAuth2:
    from auth_retry.adapters import OAuth2Config, OAuth2RefreshAdapter

    adapter = OAuth2RefreshAdapter(
        OAuth2Config(client_id="app", token_url="https://auth.example.com/token"),
        refresh_token=stored_refresh_token,
    )
    auth = create_auth_retry(adapter)
"""

from auth_retry.classifier import AuthErrorClassifier, is_auth_error
from auth_retry.config import AuthRetryConfig, load_config
from auth_retry.coordinator import RefreshCoordinator
from auth_retry.exceptions import (
    AdapterNotRegisteredError,
    AuthRetryError,
    InvalidConfigurationError,
    QueueOverflowError,
    RefreshFailedError,
    TokenRefreshError,
)
from auth_retry.factory import AuthRetry, create_auth_retry
from auth_retry.queue import DEFAULT_MAX_QUEUE_SIZE, WaiterQueue
from auth_retry.types import CredentialAdapter, ErrorClassifier, RefreshState

__version__ = "0.1.0"

__all__ = [
    # Coordinator
    "RefreshCoordinator",
    "RefreshState",
    "WaiterQueue",
    "DEFAULT_MAX_QUEUE_SIZE",
    # Facade
    "AuthRetry",
    "create_auth_retry",
    # Classification
    "AuthErrorClassifier",
    "is_auth_error",
    # Protocols
    "CredentialAdapter",
    "ErrorClassifier",
    # Config
    "AuthRetryConfig",
    "load_config",
    # Exceptions
    "AuthRetryError",
    "AdapterNotRegisteredError",
    "QueueOverflowError",
    "RefreshFailedError",
    "TokenRefreshError",
    "InvalidConfigurationError",
]
