"""
Auth-error classification.

Callers hand the coordinator whatever their HTTP client produced: an
exception carrying a response (requests/httpx/axios style), an exception
carrying a status (aiohttp.ClientResponseError), a bare response object
(aiohttp.ClientResponse), or a plain dict in any of those shapes. The default
heuristics look for status 401 in all of them using duck-typed access.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from auth_retry.types import ClassifierLike

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401

_MISSING = object()

# Status field names checked on the error itself and on its response
_STATUS_FIELDS = ("status", "status_code")


def _get_field(obj: Any, name: str) -> Any:
    """Read name from obj as a mapping key or attribute; _MISSING if absent."""
    if obj is None:
        return _MISSING
    try:
        if isinstance(obj, Mapping):
            return obj.get(name, _MISSING)
        return getattr(obj, name, _MISSING)
    except Exception:
        # Properties on third-party objects can raise on access
        return _MISSING


def extract_status(obj: Any) -> Optional[int]:
    """
    Get the HTTP status an object carries directly.

    Checks "status" then "status_code", as attribute or mapping key.

    Returns:
        Integer status, or None if obj has no integer status field
    """
    for name in _STATUS_FIELDS:
        value = _get_field(obj, name)
        # Strict: "401" or True are not statuses
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def extract_response_status(error: Any) -> Optional[int]:
    """Get the status of error.response, if error carries a response."""
    response = _get_field(error, "response")
    if response is _MISSING:
        return None
    return extract_status(response)


def is_auth_error(error: Any) -> bool:
    """
    Check if error represents an HTTP 401.

    Matches any of:
        {"response": {"status": 401}}   (nested response, axios style)
        {"status": 401}                 (status on the error, fetch style)
        response.status == 401          (error is itself a response)

    Never raises; anything unrecognised is not an auth error.
    """
    if extract_response_status(error) == HTTP_UNAUTHORIZED:
        return True
    # Covers both an error with its own status and a bare response object
    return extract_status(error) == HTTP_UNAUTHORIZED


class AuthErrorClassifier:
    """Default classifier: the structural 401 heuristics of is_auth_error()."""

    def classify(self, error: Any) -> bool:
        return is_auth_error(error)

    def __call__(self, error: Any) -> bool:
        return self.classify(error)


def resolve_classifier(classifier: ClassifierLike | None):
    """
    Turn a classifier object or plain predicate into a callable.

    Args:
        classifier: A callable, an object with classify(), or None

    Returns:
        Callable taking one error and returning bool, or None
    """
    if classifier is None:
        return None
    if callable(classifier):
        return classifier
    classify = getattr(classifier, "classify", None)
    if callable(classify):
        return classify
    raise TypeError(
        f"error_classifier must be callable or define classify(), "
        f"got {type(classifier).__name__}"
    )


__all__ = [
    "HTTP_UNAUTHORIZED",
    "AuthErrorClassifier",
    "extract_response_status",
    "extract_status",
    "is_auth_error",
    "resolve_classifier",
]
