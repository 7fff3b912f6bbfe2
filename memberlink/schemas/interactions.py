"""
Pydantic models for Discord HTTP interactions.
"""

from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7


class CommandOption(BaseModel):
    """A single slash command option as delivered by Discord."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: int
    value: Any = None


class InteractionData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, description="Command name for slash commands.")
    options: List[CommandOption] = Field(default_factory=list)
    custom_id: Optional[str] = Field(None, description="Component id for button presses.")
    component_type: Optional[int] = None

    def option(self, name: str) -> Optional[str]:
        """Return an option value as a stripped string, or ``None`` when absent."""
        for option in self.options:
            if option.name == name and option.value is not None:
                value = str(option.value).strip()
                return value or None
        return None


class Interaction(BaseModel):
    """Subset of the interaction payload the directory commands rely on."""

    model_config = ConfigDict(extra="ignore")

    id: str
    application_id: str
    type: int
    token: str
    data: Optional[InteractionData] = None
    member: Optional[Dict[str, Any]] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def actor_id(self) -> Optional[str]:
        """Invoking user id, from ``member.user`` in guilds or ``user`` in DMs."""
        source = (self.member or {}).get("user") or self.user or {}
        actor = source.get("id")
        return str(actor) if actor else None


__all__ = [
    "CommandOption",
    "Interaction",
    "InteractionData",
    "InteractionResponseType",
    "InteractionType",
]
