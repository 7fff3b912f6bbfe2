"""Public schema exports."""

from .interactions import (
    CommandOption,
    Interaction,
    InteractionData,
    InteractionResponseType,
    InteractionType,
)

__all__ = [
    "CommandOption",
    "Interaction",
    "InteractionData",
    "InteractionResponseType",
    "InteractionType",
]
