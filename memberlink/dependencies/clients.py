"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Optional

from memberlink.clients import DiscordBotClient, DiscordOAuthClient, JsonFileStore
from memberlink.core.config import get_settings
from memberlink.services import (
    BatchDispatcher,
    CredentialRefresher,
    DirectoryCommandService,
    DirectoryConfigStore,
    DirectoryUploadService,
    IdentityStore,
    InteractionVerifier,
    PaginationTokenCodec,
    RefreshScheduler,
    VerificationService,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_users_backend() -> JsonFileStore:
    """Provide the JSON file holding the identity directory."""
    return JsonFileStore(_settings().directory.users_file)


@lru_cache()
def get_identity_store() -> IdentityStore:
    """Provide the shared identity directory."""
    return IdentityStore(get_users_backend())


@lru_cache()
def get_config_store() -> DirectoryConfigStore:
    """Provide the small key/value config file."""
    return DirectoryConfigStore(JsonFileStore(_settings().directory.config_file))


@lru_cache()
def get_discord_oauth_client() -> DiscordOAuthClient:
    """Create a singleton Discord OAuth client."""
    return DiscordOAuthClient(_settings().discord)


@lru_cache()
def get_discord_bot_client() -> DiscordBotClient:
    """Create a singleton Discord bot REST client."""
    return DiscordBotClient(_settings().discord)


@lru_cache()
def get_credential_refresher() -> CredentialRefresher:
    return CredentialRefresher(get_identity_store(), get_discord_oauth_client())


@lru_cache()
def get_batch_dispatcher() -> BatchDispatcher:
    return BatchDispatcher(get_discord_bot_client())


@lru_cache()
def get_pagination_codec() -> PaginationTokenCodec:
    """Provide the userlist token codec, signed with the client secret by default."""
    settings = _settings()
    secret = settings.pagination.signing_secret or settings.discord.client_secret
    return PaginationTokenCodec(
        secret=secret, ttl=timedelta(seconds=settings.pagination.ttl_seconds)
    )


@lru_cache()
def get_refresh_scheduler() -> RefreshScheduler:
    """Provide the periodic token refresh loop."""
    settings = _settings()
    return RefreshScheduler(
        get_credential_refresher(),
        interval_seconds=settings.refresh.interval_seconds,
        initial_delay_seconds=settings.refresh.initial_delay_seconds,
    )


@lru_cache()
def get_interaction_verifier() -> Optional[InteractionVerifier]:
    """Provide the interaction signature check when a public key is configured."""
    public_key = _settings().discord.public_key
    if not public_key:
        return None
    return InteractionVerifier(public_key=public_key)


def get_verification_service() -> VerificationService:
    """Build the OAuth callback service."""
    return VerificationService(
        oauth_client=get_discord_oauth_client(),
        bot_client=get_discord_bot_client(),
        store=get_identity_store(),
        config_store=get_config_store(),
        discord_settings=_settings().discord,
    )


def get_upload_service() -> DirectoryUploadService:
    """Build the directory replacement service."""
    return DirectoryUploadService(
        backend=get_users_backend(),
        admin_secret=_settings().directory.admin_pass,
    )


def get_directory_command_service() -> DirectoryCommandService:
    """Build the slash command router."""
    settings = _settings()
    return DirectoryCommandService(
        store=get_identity_store(),
        config_store=get_config_store(),
        refresher=get_credential_refresher(),
        dispatcher=get_batch_dispatcher(),
        codec=get_pagination_codec(),
        oauth_client=get_discord_oauth_client(),
        bot_client=get_discord_bot_client(),
        owner_ids=settings.directory.owner_ids,
        page_size=settings.directory.page_size,
        batch_size=settings.dispatch.batch_size,
        batch_delay_seconds=settings.dispatch.batch_delay_seconds,
    )


__all__ = [
    "get_batch_dispatcher",
    "get_config_store",
    "get_credential_refresher",
    "get_directory_command_service",
    "get_discord_bot_client",
    "get_discord_oauth_client",
    "get_identity_store",
    "get_interaction_verifier",
    "get_pagination_codec",
    "get_refresh_scheduler",
    "get_upload_service",
    "get_users_backend",
    "get_verification_service",
]
