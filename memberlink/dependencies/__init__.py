"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_batch_dispatcher,
    get_config_store,
    get_credential_refresher,
    get_directory_command_service,
    get_discord_bot_client,
    get_discord_oauth_client,
    get_identity_store,
    get_interaction_verifier,
    get_pagination_codec,
    get_refresh_scheduler,
    get_upload_service,
    get_users_backend,
    get_verification_service,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
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
