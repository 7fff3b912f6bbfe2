"""
Thin async wrapper over the Discord REST endpoints the bot uses.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from memberlink.core.config import DiscordSettings


class DiscordAPIError(Exception):
    """Raised when Discord answers a bot call with a non-success status."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class DiscordBotClient:
    """Guild membership, role, channel and interaction webhook calls."""

    def __init__(
        self,
        settings: DiscordSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._base_url = settings.api_base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    @property
    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self._settings.bot_token}"}

    async def add_guild_member(
        self, *, guild_id: str, user_id: str, access_token: str
    ) -> int:
        """
        Join ``user_id`` to ``guild_id`` using the member's own OAuth token.

        Returns the HTTP status: 201 when the member was added, 204 when they
        were already in the guild.
        """
        async with self._client() as client:
            response = await client.put(
                f"{self._base_url}/guilds/{guild_id}/members/{user_id}",
                headers=self._auth_headers,
                json={"access_token": access_token},
            )
        self._raise_for_status(response)
        return response.status_code

    async def add_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None:
        async with self._client() as client:
            response = await client.put(
                f"{self._base_url}/guilds/{guild_id}/members/{user_id}/roles/{role_id}",
                headers=self._auth_headers,
            )
        self._raise_for_status(response)

    async def send_channel_message(
        self,
        *,
        channel_id: str,
        content: str,
        attachment: Optional[Path] = None,
    ) -> None:
        """Post a message, optionally attaching a file from disk."""
        url = f"{self._base_url}/channels/{channel_id}/messages"
        async with self._client() as client:
            if attachment is not None and attachment.exists():
                payload = {
                    "content": content,
                    "attachments": [{"id": 0, "filename": attachment.name}],
                }
                files = {
                    "files[0]": (
                        attachment.name,
                        attachment.read_bytes(),
                        "application/json",
                    )
                }
                response = await client.post(
                    url,
                    headers=self._auth_headers,
                    data={"payload_json": json.dumps(payload)},
                    files=files,
                )
            else:
                response = await client.post(
                    url, headers=self._auth_headers, json={"content": content}
                )
        self._raise_for_status(response)

    async def send_followup(
        self, *, application_id: str, interaction_token: str, payload: Dict[str, Any]
    ) -> None:
        """Send a follow-up message for a deferred interaction."""
        async with self._client() as client:
            response = await client.post(
                f"{self._base_url}/webhooks/{application_id}/{interaction_token}",
                json=payload,
            )
        self._raise_for_status(response)

    async def register_commands(
        self, *, application_id: str, commands: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Overwrite the global application command set."""
        async with self._client() as client:
            response = await client.put(
                f"{self._base_url}/applications/{application_id}/commands",
                headers=self._auth_headers,
                json=commands,
            )
        self._raise_for_status(response)
        return response.json()

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not response.is_success:
            raise DiscordAPIError(response.status_code, response.text or "Unknown error")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)


__all__ = ["DiscordAPIError", "DiscordBotClient"]
