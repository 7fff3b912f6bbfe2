"""
Completes the OAuth callback: exchange the code, record the identity, grant
the verified role and announce the verification.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from memberlink.clients.discord_bot import DiscordAPIError, DiscordBotClient
from memberlink.clients.discord_oauth import DiscordOAuthClient, OAuthTokenExchangeError
from memberlink.core.config import DiscordSettings
from memberlink.models.credentials import (
    UNKNOWN_DISPLAY_NAME,
    UNKNOWN_ORIGIN,
    CredentialRecord,
)
from memberlink.services.directory_config import DirectoryConfigStore
from memberlink.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)


class VerificationError(Exception):
    """Raised when an authorization code cannot be turned into an identity."""


def build_display_name(user: Dict[str, Any]) -> str:
    """``global_name`` or ``username``, with ``#discriminator`` for legacy tags."""
    nested = user.get("user") if isinstance(user.get("user"), dict) else {}
    name = (
        user.get("global_name") or user.get("username") or nested.get("username") or ""
    ).strip()
    discriminator = user.get("discriminator")
    suffix = f"#{discriminator}" if discriminator and discriminator != "0" else ""
    return (name or UNKNOWN_DISPLAY_NAME) + suffix


def client_origin(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """Best-effort caller address: first ``X-Forwarded-For`` hop, then the peer."""
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer_host or UNKNOWN_ORIGIN


class VerificationService:
    """Turn a successful Discord authorization into a directory record."""

    def __init__(
        self,
        *,
        oauth_client: DiscordOAuthClient,
        bot_client: DiscordBotClient,
        store: IdentityStore,
        config_store: DirectoryConfigStore,
        discord_settings: DiscordSettings,
    ) -> None:
        self._oauth = oauth_client
        self._bot = bot_client
        self._store = store
        self._config = config_store
        self._discord = discord_settings

    async def complete(self, *, code: str, origin_address: str) -> CredentialRecord:
        try:
            grant = await self._oauth.exchange_authorization_code(code)
        except (OAuthTokenExchangeError, httpx.HTTPError) as exc:
            logger.error("Authorization code exchange failed: %s", exc)
            raise VerificationError("Failed to get access token from Discord.") from exc

        try:
            user = await self._oauth.fetch_identity(
                grant.access_token, grant.token_type or "Bearer"
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Fetching the authorized identity failed: %s", exc)
            raise VerificationError("Failed to read the Discord identity.") from exc

        identity_id = str(user.get("id") or "")
        if not identity_id:
            raise VerificationError("Discord returned an identity without an id.")

        record = CredentialRecord(
            id=identity_id,
            display_name=build_display_name(user),
            verified_at=datetime.now(timezone.utc),
            origin_address=origin_address,
            avatar_ref=user.get("avatar"),
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
        )
        self._store.upsert(record)
        logger.info("Stored verified identity %s (%s)", record.display_name, record.id)

        await self._grant_verified_role(record)
        await self._announce(record, user)
        return record

    async def _grant_verified_role(self, record: CredentialRecord) -> bool:
        guild_id = self._discord.home_guild_id
        role_id = self._discord.verified_role_id
        if not guild_id or not role_id:
            logger.info("Verified role not configured; skipped role grant for %s", record.id)
            return False

        logger.info("Granting verified role to %s in guild %s", record.id, guild_id)
        try:
            await self._bot.add_member_role(
                guild_id=guild_id, user_id=record.id, role_id=role_id
            )
        except DiscordAPIError as exc:
            if exc.status_code == 404:
                logger.info(
                    "Identity %s isn't a member of guild %s; skipped role grant",
                    record.id,
                    guild_id,
                )
            else:
                logger.warning("Failed to add verified role to %s: %s", record.id, exc)
            return False
        except httpx.HTTPError as exc:
            logger.warning("Failed to add verified role to %s: %s", record.id, exc)
            return False

        logger.info("Assigned verified role to %s (%s)", record.display_name, record.id)
        return True

    async def _announce(self, record: CredentialRecord, user: Dict[str, Any]) -> None:
        channel_id = self._config.get_verified_channel()
        if not channel_id:
            return
        display = user.get("global_name") or user.get("username") or UNKNOWN_DISPLAY_NAME
        try:
            await self._bot.send_channel_message(
                channel_id=channel_id,
                content=f"{display} verified.",
                attachment=self._store.path,
            )
        except (DiscordAPIError, httpx.HTTPError, OSError) as exc:
            logger.warning("Failed to send verified log message: %s", exc)


__all__ = [
    "VerificationError",
    "VerificationService",
    "build_display_name",
    "client_origin",
]
