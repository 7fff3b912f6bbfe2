"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the background token
refresher and the maintenance scripts share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_csv(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    return tuple(item.strip() for item in value.split(",") if item.strip())


class DiscordSettings(BaseSettings):
    """Credentials and identifiers for the Discord application."""

    client_id: str = Field(..., validation_alias="DISCORD_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="DISCORD_CLIENT_SECRET")
    bot_token: str = Field(..., validation_alias="DISCORD_BOT_TOKEN")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="DISCORD_REDIRECT_URI")
    public_key: Optional[str] = Field(
        None,
        validation_alias="DISCORD_PUBLIC_KEY",
        description="Hex encoded Ed25519 key used to verify interaction requests.",
    )
    home_guild_id: Optional[str] = Field(
        None,
        validation_alias="DISCORD_GUILD_ID",
        description="Guild where freshly verified members receive the verified role.",
    )
    verified_role_id: Optional[str] = Field(None, validation_alias="DISCORD_VERIFIED_ROLE_ID")
    api_base_url: str = Field(
        "https://discord.com/api/v10", validation_alias="DISCORD_API_BASE_URL"
    )
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("identify", "guilds.join"), validation_alias="DISCORD_OAUTH_SCOPES"
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class DirectorySettings(BaseSettings):
    """Where the identity directory lives and who may administer it."""

    users_file: Path = Field(Path("data/users.json"), validation_alias="USERS_FILE")
    config_file: Path = Field(Path("data/config.json"), validation_alias="CONFIG_FILE")
    owner_ids: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="OWNER_IDS",
        description="Comma separated Discord user ids allowed to run commands.",
    )
    admin_pass: Optional[str] = Field(
        None,
        validation_alias="ADMIN_PASS",
        description="Shared secret required to replace the directory file wholesale.",
    )
    page_size: int = Field(20, validation_alias="USERLIST_PAGE_SIZE", ge=1)

    @field_validator("owner_ids", mode="before")
    @classmethod
    def _split_owner_ids(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_csv(value)


class DispatchSettings(BaseSettings):
    """Admission control for bulk guild invitations."""

    batch_size: int = Field(5, validation_alias="DISPATCH_BATCH_SIZE", ge=1)
    batch_delay_seconds: float = Field(
        5.0, validation_alias="DISPATCH_BATCH_DELAY_SECONDS", ge=0
    )


class RefreshSettings(BaseSettings):
    """Periodic token refresh schedule."""

    enabled: bool = Field(True, validation_alias="REFRESH_ENABLED")
    interval_seconds: float = Field(
        5 * 60 * 60, validation_alias="REFRESH_INTERVAL_SECONDS", gt=0
    )
    initial_delay_seconds: float = Field(
        60.0,
        validation_alias="REFRESH_INITIAL_DELAY_SECONDS",
        ge=0,
        description="Delay before the first pass so start-up stays quiet.",
    )


class PaginationSettings(BaseSettings):
    """Lifetime and signing of the userlist pagination buttons."""

    ttl_seconds: int = Field(120, validation_alias="PAGINATION_TTL_SECONDS", gt=0)
    signing_secret: Optional[str] = Field(
        None,
        validation_alias="PAGINATION_SIGNING_SECRET",
        description="Defaults to the Discord client secret when omitted.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "DirectorySettings",
    "DiscordSettings",
    "DispatchSettings",
    "PaginationSettings",
    "RefreshSettings",
    "get_settings",
]
