"""
Discord OAuth2 utilities.

These helpers drive the authorization-code flow and the refresh-token
lifecycle for linked identities.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import status

from memberlink.core.config import DiscordSettings
from memberlink.models.oauth import TokenGrant

DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class DiscordOAuthClient:
    """Build Discord authorization URLs and talk to the token endpoint."""

    def __init__(
        self,
        settings: DiscordSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._timeout = timeout

    @property
    def token_url(self) -> str:
        return f"{self._settings.api_base_url.rstrip('/')}/oauth2/token"

    @property
    def identity_url(self) -> str:
        return f"{self._settings.api_base_url.rstrip('/')}/users/@me"

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        """Construct the Discord consent URL."""
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": str(self._settings.redirect_uri),
            "response_type": "code",
            "scope": " ".join(self._settings.scopes),
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{DISCORD_AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access/refresh token pair."""
        payload = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": str(self._settings.redirect_uri),
        }
        grant = await self._post_token(payload)
        if not grant.access_token:
            raise OAuthTokenExchangeError("Token payload returned no access token.")
        return grant

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """
        Trade a refresh token for a new grant.

        A successful response may still omit ``access_token`` or
        ``refresh_token``; callers decide what a partial grant means.
        """
        payload = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        return await self._post_token(payload)

    async def fetch_identity(
        self, access_token: str, token_type: str = "Bearer"
    ) -> Dict[str, Any]:
        """Return the ``/users/@me`` payload for the token owner."""
        async with self._client() as client:
            response = await client.get(
                self.identity_url,
                headers={"Authorization": f"{token_type} {access_token}"},
            )
        response.raise_for_status()
        return response.json()

    async def token_is_valid(self, access_token: str) -> bool:
        """Probe ``/users/@me``; any non-2xx answer means the token is unusable."""
        async with self._client() as client:
            response = await client.get(
                self.identity_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        return response.is_success

    async def _post_token(self, payload: Dict[str, str]) -> TokenGrant:
        async with self._client() as client:
            response = await client.post(self.token_url, data=payload)

        if response.status_code != status.HTTP_200_OK:
            raise OAuthTokenExchangeError(
                f"HTTP {response.status_code}: {response.text}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token endpoint returned invalid JSON.") from exc
        if not isinstance(body, dict):
            raise OAuthTokenExchangeError("Token endpoint returned an unexpected payload.")
        return TokenGrant.model_validate(body)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)


__all__ = ["DiscordOAuthClient", "OAuthTokenExchangeError", "DISCORD_AUTHORIZE_URL"]
