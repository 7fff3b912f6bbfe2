"""Hand-written fakes shared by the service and endpoint tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from memberlink.clients.discord_bot import DiscordAPIError
from memberlink.clients.json_store import JsonFileStore
from memberlink.models.credentials import CredentialRecord
from memberlink.models.oauth import TokenGrant
from memberlink.services.identity_store import IdentityStore


def make_record(identity_id: str, **overrides: Any) -> CredentialRecord:
    values: Dict[str, Any] = {
        "id": identity_id,
        "display_name": f"user-{identity_id}",
        "access_token": f"access-{identity_id}",
        "refresh_token": f"refresh-{identity_id}",
        "origin_address": "10.0.0.1",
    }
    values.update(overrides)
    return CredentialRecord(**values)


def make_store(tmp_path: Path, *records: CredentialRecord) -> IdentityStore:
    store = IdentityStore(JsonFileStore(tmp_path / "users.json"))
    store.save({record.id: record for record in records})
    return store


class FakeOAuthClient:
    """Answers refresh calls from a per-refresh-token script."""

    def __init__(
        self,
        *,
        grants: Optional[Dict[str, Any]] = None,
        valid_tokens: Optional[set[str]] = None,
        identity: Optional[Dict[str, Any]] = None,
        exchange_grant: Optional[TokenGrant] = None,
    ) -> None:
        self.grants = grants or {}
        self.valid_tokens = valid_tokens or set()
        self.identity = identity or {}
        self.exchange_grant = exchange_grant
        self.refreshed: List[str] = []
        self.checked: List[str] = []
        self.codes: List[str] = []

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        return "https://discord.example/authorize?client_id=test-client-id"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        from memberlink.clients.discord_oauth import OAuthTokenExchangeError

        self.codes.append(code)
        if self.exchange_grant is None:
            raise OAuthTokenExchangeError("invalid_grant")
        return self.exchange_grant

    async def fetch_identity(self, access_token: str, token_type: str = "Bearer") -> Dict[str, Any]:
        return self.identity

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.refreshed.append(refresh_token)
        outcome = self.grants.get(refresh_token)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return TokenGrant()
        return outcome

    async def token_is_valid(self, access_token: str) -> bool:
        self.checked.append(access_token)
        return access_token in self.valid_tokens


class FakeBotClient:
    """Records every bot call; selected users fail with a Discord error."""

    def __init__(
        self,
        *,
        failing_users: Optional[set[str]] = None,
        role_status: Optional[int] = None,
    ) -> None:
        self.failing_users = failing_users or set()
        self.role_status = role_status
        self.joins: List[Dict[str, str]] = []
        self.roles: List[Dict[str, str]] = []
        self.messages: List[Dict[str, Any]] = []
        self.followups: List[Dict[str, Any]] = []

    async def add_guild_member(self, *, guild_id: str, user_id: str, access_token: str) -> int:
        self.joins.append(
            {"guild_id": guild_id, "user_id": user_id, "access_token": access_token}
        )
        if user_id in self.failing_users:
            raise DiscordAPIError(403, "Missing Permissions")
        return 201

    async def add_member_role(self, *, guild_id: str, user_id: str, role_id: str) -> None:
        self.roles.append({"guild_id": guild_id, "user_id": user_id, "role_id": role_id})
        if self.role_status is not None:
            raise DiscordAPIError(self.role_status, "Unknown Member")

    async def send_channel_message(
        self, *, channel_id: str, content: str, attachment: Optional[Path] = None
    ) -> None:
        self.messages.append(
            {"channel_id": channel_id, "content": content, "attachment": attachment}
        )

    async def send_followup(
        self, *, application_id: str, interaction_token: str, payload: Dict[str, Any]
    ) -> None:
        self.followups.append(payload)
