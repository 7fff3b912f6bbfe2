"""
Keeps every durable identity's access token fresh and evicts the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from memberlink.clients.discord_oauth import DiscordOAuthClient
from memberlink.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshReport:
    """Outcome of one refresh pass."""

    refreshed: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.refreshed + self.deleted


class CredentialRefresher:
    """Walk the identity store, rotating or evicting each token pair."""

    def __init__(self, store: IdentityStore, oauth_client: DiscordOAuthClient) -> None:
        self._store = store
        self._oauth = oauth_client

    async def refresh_all(self) -> RefreshReport:
        """
        Refresh every record and save the store once at the end.

        Records without a refresh token, records whose refresh returns no
        access token and records whose refresh raises are all evicted. A
        record keeps its previous refresh token when the provider omits a new
        one, so no surviving record ends the pass without one.
        """
        logger.info("Starting token refresh cycle")
        records = self._store.load()
        if not records:
            logger.info("No identities to refresh")
            return RefreshReport()

        refreshed = 0
        deleted = 0
        for identity_id, record in list(records.items()):
            if not record.refresh_token:
                logger.info("Deleting identity %s (no refresh token)", identity_id)
                del records[identity_id]
                deleted += 1
                continue

            try:
                grant = await self._oauth.refresh_token(record.refresh_token)
            except Exception as exc:
                logger.warning(
                    "Deleting identity %s (error during refresh): %s", identity_id, exc
                )
                del records[identity_id]
                deleted += 1
                continue

            if not grant.access_token:
                logger.warning(
                    "Deleting identity %s (refresh returned no access token)",
                    identity_id,
                )
                del records[identity_id]
                deleted += 1
                continue

            records[identity_id] = record.model_copy(
                update={
                    "access_token": grant.access_token,
                    "refresh_token": grant.refresh_token or record.refresh_token,
                }
            )
            refreshed += 1

        self._store.save(records)
        logger.info(
            "Token refresh complete: %s refreshed, %s deleted", refreshed, deleted
        )
        return RefreshReport(refreshed=refreshed, deleted=deleted)

    async def prune_invalid(self) -> int:
        """Evict records whose access token no longer authenticates."""
        records = self._store.load()
        removed = 0
        for identity_id, record in list(records.items()):
            if not record.access_token:
                del records[identity_id]
                removed += 1
                continue
            try:
                valid = await self._oauth.token_is_valid(record.access_token)
            except Exception as exc:
                logger.warning("Token check failed for %s: %s", identity_id, exc)
                valid = False
            if not valid:
                del records[identity_id]
                removed += 1

        self._store.save(records)
        logger.info("Cleanup removed %s identities with invalid tokens", removed)
        return removed


__all__ = ["CredentialRefresher", "RefreshReport"]
