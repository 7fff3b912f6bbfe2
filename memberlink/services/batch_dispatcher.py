"""
Rate-limited fan-out of guild invitations across many identities.

Identities are processed in contiguous fixed-size batches. Calls inside a
batch run concurrently; batch N+1 starts only after every call of batch N has
settled, and a fixed pause separates consecutive batches. Failures are
isolated per identity and only aggregate counts are reported.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Sequence, TypeVar

from memberlink.clients.discord_bot import DiscordBotClient
from memberlink.models.credentials import CredentialRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DispatchResult:
    success: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.success + self.failed


class MissingAccessTokenError(Exception):
    """Raised when an identity has no access token to act with."""


def iter_batches(items: Sequence[T], batch_size: int) -> Iterator[Sequence[T]]:
    """Yield contiguous slices of ``batch_size`` (the last one may be shorter)."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    for start in range(0, len(items), batch_size):
        yield items[start : start + batch_size]


class BatchDispatcher:
    """Add identities to a guild without outrunning Discord's rate limits."""

    def __init__(
        self,
        bot_client: DiscordBotClient,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._bot = bot_client
        self._sleep = sleep

    async def dispatch(
        self,
        records: Sequence[CredentialRecord],
        target: str,
        batch_size: int,
        inter_batch_delay: float,
    ) -> DispatchResult:
        batches = list(iter_batches(records, batch_size))
        success = 0
        failed = 0
        for index, batch in enumerate(batches):
            outcomes = await asyncio.gather(
                *(self._invite(record, target) for record in batch)
            )
            batch_success = sum(1 for ok in outcomes if ok)
            success += batch_success
            failed += len(outcomes) - batch_success
            logger.info(
                "Batch %s/%s for guild %s: %s invited, %s failed",
                index + 1,
                len(batches),
                target,
                batch_success,
                len(outcomes) - batch_success,
            )
            if index + 1 < len(batches):
                await self._sleep(inter_batch_delay)

        return DispatchResult(success=success, failed=failed)

    async def invite_one(self, record: CredentialRecord, target: str) -> int:
        """Invite a single identity, raising on any failure."""
        if not record.access_token:
            raise MissingAccessTokenError(f"Identity {record.id} has no access token.")
        logger.info("Inviting identity %s to guild %s", record.id, target)
        status_code = await self._bot.add_guild_member(
            guild_id=target, user_id=record.id, access_token=record.access_token
        )
        logger.info("Invited identity %s to guild %s", record.id, target)
        return status_code

    async def _invite(self, record: CredentialRecord, target: str) -> bool:
        if not record.access_token:
            logger.warning("Identity %s has no access token, skipping invite", record.id)
            return False
        try:
            await self._bot.add_guild_member(
                guild_id=target, user_id=record.id, access_token=record.access_token
            )
        except Exception as exc:
            logger.warning("Failed to invite identity %s: %s", record.id, exc)
            return False
        logger.info("Invited identity %s to guild %s", record.id, target)
        return True


__all__ = [
    "BatchDispatcher",
    "DispatchResult",
    "MissingAccessTokenError",
    "iter_batches",
]
