"""Tests for the environment drift detection script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from pathlib import Path

import pytest

from memberlink.core.config import AppSettings
from scripts import check_env

REQUIRED_ENV_KEYS = [
    "DISCORD_CLIENT_ID",
    "DISCORD_CLIENT_SECRET",
    "DISCORD_BOT_TOKEN",
    "DISCORD_REDIRECT_URI",
]

VALID_ENV = {
    "DISCORD_CLIENT_ID": "test-client-id",
    "DISCORD_CLIENT_SECRET": "test-client-secret",
    "DISCORD_BOT_TOKEN": "test-bot-token",
    "DISCORD_REDIRECT_URI": "https://example.com/callback",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)

    exit_code = check_env.main(
        ["record", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()

    _clear_required_env(monkeypatch)
    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_OK

    _write_env(env_file, **{**VALID_ENV, "DISCORD_BOT_TOKEN": "rotated"})

    _clear_required_env(monkeypatch)
    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_CHECKSUM_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    values = dict(VALID_ENV)
    values.pop("DISCORD_BOT_TOKEN")
    _write_env(env_file, **values)

    exit_code = check_env.main(
        ["record", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    assert not hash_file.exists()


def test_feature_gaps_name_the_missing_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("DISCORD_PUBLIC_KEY", "ADMIN_PASS", "DISCORD_GUILD_ID", "DISCORD_VERIFIED_ROLE_ID"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OWNER_IDS", "")
    monkeypatch.setenv("DISCORD_GUILD_ID", "guild-1")

    gaps = check_env.find_feature_gaps(AppSettings())

    joined = "\n".join(gaps)
    assert "DISCORD_PUBLIC_KEY" in joined
    assert "OWNER_IDS" in joined
    assert "ADMIN_PASS" in joined
    assert "DISCORD_VERIFIED_ROLE_ID" in joined
