"""OAuth2 data models and configuration."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


@dataclass
class OAuth2Token:
    """
    OAuth2 access token with expiration tracking.

    Attributes:
        access_token: The access token string
        token_type: Token type (typically "Bearer")
        expires_at: UTC timestamp when token expires
        scope: Space-separated scopes granted
        refresh_token: Rotated refresh token, if the server issued one
    """

    access_token: str
    token_type: str
    expires_at: datetime
    scope: str | None = None
    refresh_token: str | None = None

    @classmethod
    def from_response(cls, response: dict, expires_in: int | None = None) -> "OAuth2Token":
        """
        Create token from OAuth2 token response.

        Args:
            response: OAuth2 token response dict
            expires_in: Optional override for expires_in (seconds)

        Returns:
            OAuth2Token instance
        """
        expires_in = expires_in or response.get("expires_in", 3600)
        expires_at = datetime.now(UTC) + timedelta(seconds=int(expires_in))

        return cls(
            access_token=response["access_token"],
            token_type=response.get("token_type", "Bearer"),
            expires_at=expires_at,
            scope=response.get("scope"),
            refresh_token=response.get("refresh_token"),
        )


@dataclass
class OAuth2Config:
    """
    OAuth2 refresh endpoint configuration.

    Attributes:
        client_id: OAuth2 client ID
        token_url: Token endpoint URL
        client_secret: OAuth2 client secret; omitted for public clients
        scope: Space-separated or list of scopes to request
        additional_params: Additional parameters for the refresh request
        timeout_seconds: Total timeout for one refresh request
    """

    client_id: str
    token_url: str
    client_secret: str | None = None
    scope: str | list[str] | None = None
    additional_params: dict[str, str] | None = None
    timeout_seconds: float = 30.0

    def get_scope_string(self) -> str:
        """Get scope as space-separated string."""
        if not self.scope:
            return ""
        if isinstance(self.scope, list):
            return " ".join(self.scope)
        return self.scope


__all__ = ["OAuth2Token", "OAuth2Config"]
