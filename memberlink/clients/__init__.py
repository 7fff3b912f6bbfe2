"""Expose constructed client wrappers."""

from .discord_bot import DiscordAPIError, DiscordBotClient
from .discord_oauth import DiscordOAuthClient, OAuthTokenExchangeError
from .json_store import JsonFileStore

__all__ = [
    "DiscordAPIError",
    "DiscordBotClient",
    "DiscordOAuthClient",
    "JsonFileStore",
    "OAuthTokenExchangeError",
]
