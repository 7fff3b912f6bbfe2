"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_DATA_DIR = Path(tempfile.mkdtemp(prefix="memberlink-tests-"))

_DEFAULT_ENV_VARS: dict[str, str] = {
    "DISCORD_CLIENT_ID": "test-client-id",
    "DISCORD_CLIENT_SECRET": "test-client-secret",
    "DISCORD_BOT_TOKEN": "test-bot-token",
    "DISCORD_REDIRECT_URI": "https://example.com/callback",
    "OWNER_IDS": "owner-1",
    "REFRESH_ENABLED": "false",
    "USERS_FILE": str(_DATA_DIR / "users.json"),
    "CONFIG_FILE": str(_DATA_DIR / "config.json"),
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
