"""
Re-issue helpers that wire a coordinator into a request path.

Both helpers retry exactly once: the original call fails with an auth
error, the coordinator refreshes (or joins the refresh already running),
and the call is made again. A failed refresh raises the refresh error.

Usage:
    @with_auth_retry(coordinator)
    async def fetch_invoice(invoice_id):
        ...

    response = await request_with_auth_retry(
        session, coordinator, "GET", url,
        headers_factory=adapter.auth_headers,
    )
"""

import logging
from collections.abc import Callable, Mapping
from functools import wraps
from typing import Any, Protocol

import aiohttp

logger = logging.getLogger(__name__)


class SupportsAuthRetry(Protocol):
    """Anything exposing is_auth_error() and on_401(): coordinator or AuthRetry."""

    def is_auth_error(self, error: Any) -> bool: ...

    def on_401(self, error: Any = None) -> Any: ...


def with_auth_retry(coordinator: SupportsAuthRetry):
    """
    Decorator for async callables that raise on auth failure.

    When the wrapped call raises an exception the coordinator classifies as
    an auth error, waits for the refresh and calls the function once more.
    Other exceptions propagate unchanged.
    """

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not coordinator.is_auth_error(e):
                    raise
                auth_error = e

            logger.info(
                f"Auth error in {func.__name__}, waiting for credential refresh",
                extra={
                    "operation": func.__name__,
                    "error_type": type(auth_error).__name__,
                },
            )
            await coordinator.on_401(auth_error)
            return await func(*args, **kwargs)

        return wrapper

    return decorator


async def request_with_auth_retry(
    session: aiohttp.ClientSession,
    coordinator: SupportsAuthRetry,
    method: str,
    url: str,
    headers_factory: Callable[[], Mapping[str, str]] | None = None,
    **kwargs: Any,
) -> aiohttp.ClientResponse:
    """
    Issue an aiohttp request, refreshing credentials and re-issuing on 401.

    headers_factory is called before each attempt so the retry picks up the
    credential the refresh applied. Request bodies must be re-sendable
    (bytes, str, dict), not one-shot streams.

    Args:
        session: aiohttp session
        coordinator: RefreshCoordinator or AuthRetry
        method: HTTP method
        url: Request URL
        headers_factory: Returns per-attempt headers (e.g. adapter.auth_headers)
        **kwargs: Passed to session.request()

    Returns:
        The response of the last attempt; the caller owns releasing it
    """
    base_headers = dict(kwargs.pop("headers", None) or {})

    def build_headers() -> dict[str, str]:
        headers = dict(base_headers)
        if headers_factory is not None:
            headers.update(headers_factory())
        return headers

    response = await session.request(method, url, headers=build_headers(), **kwargs)
    if not coordinator.is_auth_error(response):
        return response

    response.release()
    logger.info(
        "Request rejected as unauthenticated, waiting for credential refresh",
        extra={
            "http_method": method,
            "http_url": url,
            "http_status": response.status,
        },
    )
    await coordinator.on_401(response)

    return await session.request(method, url, headers=build_headers(), **kwargs)


__all__ = ["SupportsAuthRetry", "with_auth_retry", "request_with_auth_retry"]
