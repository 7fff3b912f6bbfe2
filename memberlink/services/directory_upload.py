"""Wholesale replacement of the directory file behind a shared secret."""

from __future__ import annotations

import hmac
import json
import logging
from pathlib import Path
from typing import Optional

from memberlink.clients.json_store import JsonFileStore

logger = logging.getLogger(__name__)


class UploadRejectedError(Exception):
    """Raised when the supplied secret does not match."""


class InvalidUploadError(Exception):
    """Raised when the uploaded content is not a JSON object."""


class DirectoryUploadService:
    """Back up the current directory file, then overwrite it with an upload."""

    def __init__(self, *, backend: JsonFileStore, admin_secret: Optional[str]) -> None:
        self._backend = backend
        self._secret = admin_secret

    def check_secret(self, candidate: Optional[str]) -> bool:
        if not self._secret or candidate is None:
            return False
        return hmac.compare_digest(candidate.encode("utf-8"), self._secret.encode("utf-8"))

    def replace(self, *, secret: Optional[str], content: bytes) -> Optional[Path]:
        """
        Replace the directory with ``content`` and return the backup path.

        Nothing on disk changes when the secret is wrong or the content does
        not parse. No schema validation happens beyond the JSON parse.
        """
        if not self.check_secret(secret):
            raise UploadRejectedError("Unauthorized")

        try:
            data = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise InvalidUploadError("Uploaded file is not valid JSON.") from exc
        if not isinstance(data, dict):
            raise InvalidUploadError("Uploaded JSON must be an object keyed by user id.")

        backup = self._backend.backup()
        if not self._backend.write(data):
            raise OSError(f"Failed to write {self._backend.path}")
        logger.info(
            "Replaced %s with %s uploaded entries (backup: %s)",
            self._backend.path,
            len(data),
            backup,
        )
        return backup


__all__ = ["DirectoryUploadService", "InvalidUploadError", "UploadRejectedError"]
