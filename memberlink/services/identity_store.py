"""
Read-through, write-through store of linked identities.

Every mutating call reloads the directory file immediately before applying
its change and then writes the whole mapping back in one call. This narrows
the lost-update window between concurrent writers (for example a manual
removal racing a refresh pass) but does not close it: the last writer wins
at file granularity and an interleaved update can be lost.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from memberlink.clients.json_store import JsonFileStore
from memberlink.models.credentials import CredentialRecord

logger = logging.getLogger(__name__)


class IdentityStore:
    """Maps identity id to :class:`CredentialRecord`."""

    def __init__(self, backend: JsonFileStore) -> None:
        self._backend = backend

    @property
    def path(self) -> Path:
        return self._backend.path

    def load(self) -> Dict[str, CredentialRecord]:
        """
        Load every entry; never raises.

        Entries that cannot be read as a record are kept as tokenless
        stand-ins and written back verbatim on the next save.
        """
        records: Dict[str, CredentialRecord] = {}
        for key, payload in self._backend.read().items():
            if not isinstance(payload, dict):
                logger.warning("Directory entry %s is not an object; keeping it as-is", key)
                records[key] = CredentialRecord.unparsed(key, payload)
                continue
            data = dict(payload)
            if data.get("id") and str(data["id"]) != key:
                logger.warning(
                    "Directory entry %s carries id %s; using the key", key, data["id"]
                )
            data["id"] = key
            try:
                records[key] = CredentialRecord.model_validate(data)
            except ValidationError as exc:
                logger.warning("Directory entry %s does not parse; keeping it as-is: %s", key, exc)
                records[key] = CredentialRecord.unparsed(key, payload)
        return records

    def save(self, records: Mapping[str, CredentialRecord]) -> bool:
        return self._backend.write(
            {identity_id: record.to_json() for identity_id, record in records.items()}
        )

    def get(self, identity_id: str) -> Optional[CredentialRecord]:
        return self.load().get(identity_id)

    def upsert(self, record: CredentialRecord) -> None:
        records = self.load()
        records[record.id] = record
        self.save(records)

    def remove(self, identity_id: str) -> bool:
        records = self.load()
        if records.pop(identity_id, None) is None:
            return False
        self.save(records)
        return True

    def clear(self) -> None:
        self.save({})


def group_by_origin(
    records: Iterable[CredentialRecord],
) -> Dict[str, List[CredentialRecord]]:
    """Group records sharing an origin address, keeping groups of two or more."""
    groups: Dict[str, List[CredentialRecord]] = defaultdict(list)
    for record in records:
        groups[record.origin_address].append(record)
    return {origin: members for origin, members in groups.items() if len(members) > 1}


__all__ = ["IdentityStore", "group_by_origin"]
