"""Operator-set settings persisted alongside the directory."""

from __future__ import annotations

from typing import Any, Dict, Optional

from memberlink.clients.json_store import JsonFileStore


class DirectoryConfigStore:
    """Small mutable JSON map; currently holds the verification log channel."""

    VERIFIED_CHANNEL_KEY = "verified_channel"

    def __init__(self, backend: JsonFileStore) -> None:
        self._backend = backend

    def load(self) -> Dict[str, Any]:
        return self._backend.read()

    def get_verified_channel(self) -> Optional[str]:
        channel = self.load().get(self.VERIFIED_CHANNEL_KEY)
        return str(channel) if channel else None

    def set_verified_channel(self, channel_id: str) -> bool:
        config = self.load()
        config[self.VERIFIED_CHANNEL_KEY] = channel_id
        return self._backend.write(config)


__all__ = ["DirectoryConfigStore"]
