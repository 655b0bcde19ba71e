"""Helpers that re-issue a call after the coordinator refreshes credentials."""

from auth_retry.integrations.retry import (
    SupportsAuthRetry,
    request_with_auth_retry,
    with_auth_retry,
)

__all__ = ["SupportsAuthRetry", "with_auth_retry", "request_with_auth_retry"]
