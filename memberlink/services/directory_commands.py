"""
Operator commands and pagination controls for the identity directory.

Every slash command is restricted to the configured operator allow-list.
Long-running commands answer immediately and finish in a follow-up that the
HTTP layer schedules as a background task.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

import httpx

from memberlink.clients.discord_bot import DiscordAPIError, DiscordBotClient
from memberlink.clients.discord_oauth import DiscordOAuthClient
from memberlink.schemas import Interaction, InteractionResponseType, InteractionType
from memberlink.services.batch_dispatcher import BatchDispatcher
from memberlink.services.credential_refresher import CredentialRefresher
from memberlink.services.directory_config import DirectoryConfigStore
from memberlink.services.directory_views import (
    EPHEMERAL_FLAG,
    ephemeral,
    render_alt_groups,
    render_expired_listing,
    render_listing,
    render_verify_prompt,
)
from memberlink.services.identity_store import IdentityStore, group_by_origin
from memberlink.services.pagination import (
    DEFAULT_PAGE_SIZE,
    TOKEN_NAMESPACE,
    MalformedTokenError,
    PaginationTokenCodec,
    TokenExpiredError,
    TokenForbiddenError,
    build_listing,
)

logger = logging.getLogger(__name__)

_STRING_OPTION = 3
_CHANNEL_OPTION = 7

COMMAND_DEFINITIONS: List[Dict[str, Any]] = [
    {"name": "send", "description": "Send verification embed"},
    {
        "name": "setverified",
        "description": "Set channel for verified logs",
        "options": [
            {
                "name": "channel",
                "description": "Channel to send logs",
                "type": _CHANNEL_OPTION,
                "required": True,
            }
        ],
    },
    {"name": "userlist", "description": "Displays a paginated list of verified users"},
    {
        "name": "userip",
        "description": "Shows stored IP for a user ID",
        "options": [
            {
                "name": "userid",
                "description": "The user ID to check",
                "type": _STRING_OPTION,
                "required": True,
            }
        ],
    },
    {
        "name": "useralts",
        "description": "Detect possible alts by grouping users with the same IP",
    },
    {
        "name": "addall",
        "description": "Invites all verified users to a server",
        "options": [
            {
                "name": "serverid",
                "description": "Server ID to add all users to",
                "type": _STRING_OPTION,
                "required": True,
            }
        ],
    },
    {
        "name": "adduser",
        "description": "Invites one verified user to a server",
        "options": [
            {
                "name": "userid",
                "description": "User ID to add",
                "type": _STRING_OPTION,
                "required": True,
            },
            {
                "name": "serverid",
                "description": "Server ID to add user to",
                "type": _STRING_OPTION,
                "required": True,
            },
        ],
    },
    {
        "name": "removeuser",
        "description": "Removes a user from the directory",
        "options": [
            {
                "name": "userid",
                "description": "User ID to remove",
                "type": _STRING_OPTION,
                "required": True,
            }
        ],
    },
    {"name": "removeall", "description": "Removes all users from the directory"},
    {
        "name": "cleanup",
        "description": "Removes all users whose OAuth tokens are invalid or expired",
    },
    {"name": "refresh", "description": "Refreshes every stored OAuth token now"},
]


@dataclass
class CommandOutcome:
    """Immediate interaction response plus optional deferred work."""

    response: Dict[str, Any]
    followup: Optional[Callable[[], Awaitable[None]]] = None


class CommandInputError(Exception):
    """Raised when a required command option is missing."""


def _respond(data: Dict[str, Any]) -> CommandOutcome:
    return CommandOutcome(
        {"type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, "data": data}
    )


def _update(data: Dict[str, Any]) -> CommandOutcome:
    return CommandOutcome({"type": InteractionResponseType.UPDATE_MESSAGE, "data": data})


def _notice(content: str) -> CommandOutcome:
    return _respond(ephemeral(content))


class DirectoryCommandService:
    """Route Discord interactions to directory operations."""

    def __init__(
        self,
        *,
        store: IdentityStore,
        config_store: DirectoryConfigStore,
        refresher: CredentialRefresher,
        dispatcher: BatchDispatcher,
        codec: PaginationTokenCodec,
        oauth_client: DiscordOAuthClient,
        bot_client: DiscordBotClient,
        owner_ids: Iterable[str],
        page_size: int = DEFAULT_PAGE_SIZE,
        batch_size: int = 5,
        batch_delay_seconds: float = 5.0,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._config = config_store
        self._refresher = refresher
        self._dispatcher = dispatcher
        self._codec = codec
        self._oauth = oauth_client
        self._bot = bot_client
        self._owner_ids = frozenset(owner_ids)
        self._page_size = page_size
        self._batch_size = batch_size
        self._batch_delay = batch_delay_seconds
        self._clock = clock
        self._handlers: Dict[str, Callable[[Interaction], Awaitable[CommandOutcome]]] = {
            "send": self._send,
            "setverified": self._set_verified,
            "userlist": self._userlist,
            "userip": self._userip,
            "useralts": self._useralts,
            "addall": self._addall,
            "adduser": self._adduser,
            "removeuser": self._removeuser,
            "removeall": self._removeall,
            "cleanup": self._cleanup,
            "refresh": self._refresh,
        }

    @property
    def command_names(self) -> List[str]:
        return sorted(self._handlers)

    async def handle(self, interaction: Interaction) -> CommandOutcome:
        if interaction.type == InteractionType.PING:
            return CommandOutcome({"type": InteractionResponseType.PONG})
        if interaction.type == InteractionType.MESSAGE_COMPONENT:
            return await self.handle_component(interaction)
        if interaction.type == InteractionType.APPLICATION_COMMAND:
            return await self.handle_command(interaction)
        return _notice("Unsupported interaction.")

    async def handle_command(self, interaction: Interaction) -> CommandOutcome:
        if interaction.actor_id not in self._owner_ids:
            return _notice("You are not authorized to use this bot.")

        name = interaction.data.name if interaction.data else None
        handler = self._handlers.get(name or "")
        if handler is None:
            return _notice(f"Unknown command: {name}")

        try:
            return await handler(interaction)
        except CommandInputError as exc:
            return _notice(str(exc))
        except Exception:
            logger.exception("Command %s failed", name)
            return _notice("An error occurred.")

    async def handle_component(self, interaction: Interaction) -> CommandOutcome:
        custom_id = interaction.data.custom_id if interaction.data else None
        if not custom_id or not custom_id.startswith(TOKEN_NAMESPACE):
            return CommandOutcome({"type": InteractionResponseType.DEFERRED_UPDATE_MESSAGE})

        try:
            token = self._codec.validate(
                custom_id, redeemer_id=interaction.actor_id or "", now=self._clock()
            )
        except TokenExpiredError:
            return _update(render_expired_listing())
        except TokenForbiddenError as exc:
            return _notice(str(exc))
        except MalformedTokenError:
            return _notice("This control is no longer valid.")

        return _update(self._render_page(token.target_page, token.actor_id))

    # Commands

    async def _send(self, interaction: Interaction) -> CommandOutcome:
        return _respond(render_verify_prompt(self._oauth.build_authorization_url()))

    async def _set_verified(self, interaction: Interaction) -> CommandOutcome:
        channel_id = self._require(interaction, "channel")
        if not self._config.set_verified_channel(channel_id):
            return _notice("Failed to save the verified log channel.")
        return _notice(f"Verified log channel set to <#{channel_id}>")

    async def _userlist(self, interaction: Interaction) -> CommandOutcome:
        if not self._store.load():
            return _notice("No verified users found.")
        listing = self._render_page(1, interaction.actor_id or "")
        return _respond({**listing, "flags": EPHEMERAL_FLAG})

    async def _userip(self, interaction: Interaction) -> CommandOutcome:
        user_id = self._require(interaction, "userid")
        record = self._store.get(user_id)
        if record is None:
            return _notice(f"User ID `{user_id}` not found in the directory.")
        return _notice(
            f"{record.display_name} | ID: `{record.id}` | IP: `{record.origin_address}`"
        )

    async def _useralts(self, interaction: Interaction) -> CommandOutcome:
        groups = group_by_origin(self._store.load().values())
        if not groups:
            return _notice("No IPs with multiple verified users found.")
        return _respond(render_alt_groups(groups))

    async def _addall(self, interaction: Interaction) -> CommandOutcome:
        guild_id = self._require(interaction, "serverid")
        if not self._store.load():
            return _notice("No verified users found.")

        async def run() -> None:
            await self._refresher.refresh_all()
            records = list(self._store.load().values())
            if not records:
                await self._followup(interaction, "No verified users found after token refresh.")
                return
            await self._followup(
                interaction,
                f"Inviting **{len(records)}** verified users to server ID **{guild_id}**...\n"
                f"(Processing {self._batch_size} users every {self._batch_delay:g} seconds "
                "to avoid rate limits)",
            )
            result = await self._dispatcher.dispatch(
                records, guild_id, self._batch_size, self._batch_delay
            )
            await self._followup(
                interaction,
                f"Invite process complete! Success: **{result.success}**, "
                f"Failed: **{result.failed}**.",
            )

        outcome = _notice("Refreshing all tokens before inviting...")
        outcome.followup = self._guarded(interaction, run)
        return outcome

    async def _adduser(self, interaction: Interaction) -> CommandOutcome:
        user_id = self._require(interaction, "userid")
        guild_id = self._require(interaction, "serverid")
        record = self._store.get(user_id)
        if record is None or not record.access_token:
            return _notice(f"User ID `{user_id}` not found or has no access token.")
        try:
            await self._dispatcher.invite_one(record, guild_id)
        except (DiscordAPIError, httpx.HTTPError) as exc:
            logger.warning("adduser failed for %s: %s", user_id, exc)
            return _notice(f"Failed to invite user: {exc}")
        return _notice(f"Invited {record.display_name} to server {guild_id}.")

    async def _removeuser(self, interaction: Interaction) -> CommandOutcome:
        user_id = self._require(interaction, "userid")
        if not self._store.remove(user_id):
            return _notice("That user ID does not exist in the directory.")
        return _notice(f"Removed user ID `{user_id}` from the directory.")

    async def _removeall(self, interaction: Interaction) -> CommandOutcome:
        self._store.clear()
        return _notice("All users have been removed from the directory.")

    async def _cleanup(self, interaction: Interaction) -> CommandOutcome:
        if not self._store.load():
            return _notice("No users in the directory.")

        async def run() -> None:
            removed = await self._refresher.prune_invalid()
            await self._followup(
                interaction, f"Cleanup complete! Removed {removed} invalid users."
            )

        outcome = _notice("Checking all users for invalid tokens...")
        outcome.followup = self._guarded(interaction, run)
        return outcome

    async def _refresh(self, interaction: Interaction) -> CommandOutcome:
        async def run() -> None:
            report = await self._refresher.refresh_all()
            await self._followup(
                interaction,
                f"Token refresh complete: {report.refreshed} refreshed, "
                f"{report.deleted} deleted.",
            )

        outcome = _notice("Refreshing all tokens...")
        outcome.followup = self._guarded(interaction, run)
        return outcome

    # Helpers

    def _render_page(self, page: int, actor_id: str) -> Dict[str, Any]:
        records = list(self._store.load().values())
        listing = build_listing(
            records,
            page=page,
            actor_id=actor_id,
            codec=self._codec,
            page_size=self._page_size,
            now=self._clock(),
        )
        return render_listing(listing)

    @staticmethod
    def _require(interaction: Interaction, option: str) -> str:
        value = interaction.data.option(option) if interaction.data else None
        if value is None:
            raise CommandInputError(f"Missing required option `{option}`.")
        return value

    async def _followup(self, interaction: Interaction, content: str) -> None:
        try:
            await self._bot.send_followup(
                application_id=interaction.application_id,
                interaction_token=interaction.token,
                payload=ephemeral(content),
            )
        except (DiscordAPIError, httpx.HTTPError) as exc:
            logger.warning("Failed to send follow-up message: %s", exc)

    def _guarded(
        self, interaction: Interaction, work: Callable[[], Awaitable[None]]
    ) -> Callable[[], Awaitable[None]]:
        async def runner() -> None:
            try:
                await work()
            except Exception:
                logger.exception("Deferred command work failed")
                await self._followup(interaction, "An error occurred.")

        return runner


__all__ = [
    "COMMAND_DEFINITIONS",
    "CommandInputError",
    "CommandOutcome",
    "DirectoryCommandService",
]
