"""Ready-made credential adapters."""

from auth_retry.adapters.models import OAuth2Config, OAuth2Token
from auth_retry.adapters.oauth2 import OAuth2RefreshAdapter

__all__ = ["OAuth2Config", "OAuth2Token", "OAuth2RefreshAdapter"]
