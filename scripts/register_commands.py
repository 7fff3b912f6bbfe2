"""Register the directory slash commands with Discord.

Usage::

    python -m scripts.register_commands
    python -m scripts.register_commands --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from memberlink.clients import DiscordAPIError, DiscordBotClient
from memberlink.core.config import get_settings
from memberlink.services.directory_commands import COMMAND_DEFINITIONS

EXIT_OK = 0
EXIT_API_ERROR = 4


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Overwrite the application's global slash commands."
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the command payload instead of sending it.",
    )
    return parser


async def register(client: DiscordBotClient, application_id: str) -> list[str]:
    """Send the command set and return the registered command names."""
    registered = await client.register_commands(
        application_id=application_id, commands=COMMAND_DEFINITIONS
    )
    return [command.get("name", "?") for command in registered]


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.dry_run:
        print(json.dumps(COMMAND_DEFINITIONS, indent=2))
        return EXIT_OK

    settings = get_settings()
    client = DiscordBotClient(settings.discord)
    try:
        names = asyncio.run(register(client, settings.discord.client_id))
    except DiscordAPIError as exc:
        print(f"Command registration failed: {exc}", file=sys.stderr)
        return EXIT_API_ERROR

    print(f"Registered {len(names)} commands: {', '.join(names)}")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
