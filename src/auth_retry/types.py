"""
Core types and protocols used across modules.

This module provides the state enum and the protocol definitions that the
coordinator, the facade and the bundled adapters share.
"""

from enum import Enum
from typing import Any, Callable, Optional, Protocol, Union, runtime_checkable


class RefreshState(Enum):
    """
    Refresh coordinator state.

    States:
        IDLE: No refresh in flight; the next auth failure starts one
        REFRESHING: A refresh is in flight; auth failures only queue
    """

    IDLE = "idle"
    REFRESHING = "refreshing"


@runtime_checkable
class CredentialAdapter(Protocol):
    """
    Protocol for the credential operations a coordinator drives.

    Implementations obtain a new credential (usually over the network),
    install it wherever outgoing requests read it from, and optionally
    expose a logout() hook that runs after a terminal refresh failure.
    """

    async def refresh_token(self) -> Optional[str]:
        """
        Obtain a new credential.

        Returns:
            New credential, or None/empty when the refresh failed without
            raising
        """
        ...

    def apply_token(self, token: str) -> None:
        """
        Install a freshly obtained credential.

        Args:
            token: Credential returned by refresh_token()
        """
        ...


class ErrorClassifier(Protocol):
    """
    Protocol for auth-error classification strategies.

    A classifier decides whether an arbitrary error value means the
    credential must be refreshed.
    """

    def classify(self, error: Any) -> bool:
        """
        Check if error is an authentication failure.

        Args:
            error: Any error value (exception, response, dict)

        Returns:
            True if a credential refresh should be triggered
        """
        ...


ClassifierLike = Union[ErrorClassifier, Callable[[Any], bool]]


__all__ = ["RefreshState", "CredentialAdapter", "ErrorClassifier", "ClassifierLike"]
