"""JSON file persistence with fail-soft reads and writes."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Read and write a single JSON object document.

    Reads and writes never raise: failures are logged and the caller gets an
    empty mapping or a ``False`` write result. Each write replaces the whole
    document, so concurrent writers resolve as last-writer-wins.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_name(f"{self._path.stem}_backup{self._path.suffix}")

    def read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
            data = json.loads(raw or "{}")
        except (OSError, ValueError):
            logger.exception("Failed to load JSON from %s", self._path)
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring %s: top-level JSON value is not an object", self._path)
            return {}
        return data

    def write(self, data: Mapping[str, Any]) -> bool:
        try:
            self._ensure_parent()
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save JSON to %s", self._path)
            return False
        return True

    def backup(self) -> Optional[Path]:
        """Copy the current document to its ``_backup`` sibling, if it exists."""
        if not self._path.exists():
            return None
        target = self.backup_path
        shutil.copyfile(self._path, target)
        return target

    def _ensure_parent(self) -> None:
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)


__all__ = ["JsonFileStore"]
