"""Linear OAuth authorization-code flow."""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

logger = logging.getLogger(__name__)

LINEAR_OAUTH_URL = "https://linear.app/oauth/authorize"
LINEAR_TOKEN_URL = "https://api.linear.app/oauth/token"
OAUTH_SCOPE = "read write issues:create"
PLACEHOLDER_CLIENT_ID = "your_linear_client_id"


class OAuthError(Exception):
    """Token exchange with Linear failed."""

    pass


@dataclass(frozen=True)
class OAuthSettings:
    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_uri: Optional[str]

    @property
    def is_configured(self) -> bool:
        return bool(
            self.client_id
            and self.client_secret
            and self.redirect_uri
            and self.client_id != PLACEHOLDER_CLIENT_ID
        )


def get_oauth_settings() -> OAuthSettings:
    """
    Read Linear OAuth configuration from environment variables:
    - LINEAR_CLIENT_ID
    - LINEAR_CLIENT_SECRET
    - LINEAR_REDIRECT_URI
    """
    return OAuthSettings(
        client_id=os.getenv("LINEAR_CLIENT_ID"),
        client_secret=os.getenv("LINEAR_CLIENT_SECRET"),
        redirect_uri=os.getenv("LINEAR_REDIRECT_URI"),
    )


class LinearOAuth:
    def __init__(
        self,
        settings: OAuthSettings,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def authorization_url(self) -> str:
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "response_type": "code",
            "scope": OAUTH_SCOPE,
        }
        return f"{LINEAR_OAUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    LINEAR_TOKEN_URL,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "client_id": self.settings.client_id,
                        "client_secret": self.settings.client_secret,
                        "redirect_uri": self.settings.redirect_uri,
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Linear token exchange failed: {str(e)}")
            raise OAuthError("Failed to exchange code for token") from e
        except ValueError as e:
            raise OAuthError("Linear returned an unreadable token response") from e

        access_token = data.get("access_token")
        if not access_token:
            raise OAuthError("Linear token response has no access_token")
        return access_token
