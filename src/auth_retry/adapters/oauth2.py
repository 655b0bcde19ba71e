"""Credential adapter performing the OAuth2 refresh_token grant over aiohttp."""

import asyncio
import logging
from typing import Optional

import aiohttp

from auth_retry.adapters.models import OAuth2Config, OAuth2Token
from auth_retry.exceptions import InvalidConfigurationError, TokenRefreshError

logger = logging.getLogger(__name__)


class OAuth2RefreshAdapter:
    """
    Credential adapter backed by an OAuth2 token endpoint.

    refresh_token() exchanges the held refresh token for a new access token
    (keeping a rotated refresh token if the server sends one),
    apply_token() installs the access token used by auth_headers(), and
    logout() forgets both so a failed refresh leaves no stale credentials.

    Usage:
        adapter = OAuth2RefreshAdapter(
            OAuth2Config(client_id="...", token_url="https://auth.example.com/token"),
            refresh_token=stored_refresh_token,
        )
        auth = create_auth_retry(adapter)

        headers = adapter.auth_headers()
    """

    def __init__(
        self,
        config: OAuth2Config,
        refresh_token: Optional[str] = None,
        access_token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize adapter.

        Args:
            config: Token endpoint configuration
            refresh_token: Refresh token to exchange
            access_token: Access token already in use, if any
            session: Shared aiohttp session; one is created lazily otherwise

        Raises:
            InvalidConfigurationError: If client_id or token_url is missing
        """
        if not all([config.client_id, config.token_url]):
            raise InvalidConfigurationError("client_id and token_url are required")

        self.config = config
        self._refresh_token = refresh_token
        self._access_token = access_token
        self._token: Optional[OAuth2Token] = None
        self._session = session
        self._owns_session = session is None

        logger.debug(
            "Initialized OAuth2 refresh adapter",
            extra={"token_url": config.token_url},
        )

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def current_refresh_token(self) -> Optional[str]:
        return self._refresh_token

    @property
    def token(self) -> Optional[OAuth2Token]:
        """Last token response received, with expiry information."""
        return self._token

    def auth_headers(self) -> dict[str, str]:
        """Authorization header for the current access token, or {}."""
        if not self._access_token:
            return {}
        token_type = self._token.token_type if self._token else "Bearer"
        return {"Authorization": f"{token_type} {self._access_token}"}

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP client session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def _build_request_data(self) -> dict[str, str]:
        request_data = {
            "grant_type": "refresh_token",
            "refresh_token": self._refresh_token or "",
            "client_id": self.config.client_id,
        }
        if self.config.client_secret:
            request_data["client_secret"] = self.config.client_secret

        scope = self.config.get_scope_string()
        if scope:
            request_data["scope"] = scope

        if self.config.additional_params:
            request_data.update(self.config.additional_params)
        return request_data

    async def refresh_token(self) -> Optional[str]:
        """
        Exchange the refresh token for a new access token.

        Returns:
            New access token, or None if there is no refresh token to use
            or the response carried no access token

        Raises:
            TokenRefreshError: If the endpoint returns non-200 or the request fails
        """
        if not self._refresh_token:
            logger.warning("No refresh token available, cannot refresh")
            return None

        session = await self._ensure_session()

        try:
            async with session.post(
                self.config.token_url,
                data=self._build_request_data(),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(
                        f"Token refresh failed: HTTP {response.status}",
                        extra={
                            "http_status": response.status,
                            "token_url": self.config.token_url,
                            "error_message": error_text[:200],
                        },
                    )
                    raise TokenRefreshError(
                        f"HTTP {response.status}: {error_text[:200]}",
                        status=response.status,
                    )

                response_data = await response.json()

        except aiohttp.ClientError as e:
            logger.error(f"HTTP error during token refresh: {e}")
            raise TokenRefreshError(f"HTTP error: {e}", cause=e) from e
        except asyncio.TimeoutError as e:
            logger.error("Token refresh timed out")
            raise TokenRefreshError("Token refresh timed out", cause=e) from e

        if not isinstance(response_data, dict) or not response_data.get("access_token"):
            logger.warning("Token response did not contain an access token")
            return None

        token = OAuth2Token.from_response(response_data)
        self._token = token
        if token.refresh_token:
            self._refresh_token = token.refresh_token

        logger.debug(
            "Refreshed token",
            extra={"operation": "refresh_token"},
        )
        return token.access_token

    def apply_token(self, token: str) -> None:
        self._access_token = token

    def logout(self) -> None:
        """Forget the access and refresh tokens."""
        self._access_token = None
        self._refresh_token = None
        self._token = None
        logger.info("Cleared OAuth2 credentials after failed refresh")

    async def close(self) -> None:
        """Close HTTP client session if this adapter created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0)


__all__ = ["OAuth2RefreshAdapter"]
