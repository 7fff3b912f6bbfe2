try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import json
from pathlib import Path

from fakes import make_record, make_store

from memberlink.clients.json_store import JsonFileStore
from memberlink.services.identity_store import IdentityStore, group_by_origin


def test_load_keeps_on_disk_key_names_and_unknown_fields(tmp_path: Path) -> None:
    users_file = tmp_path / "users.json"
    users_file.write_text(
        json.dumps(
            {
                "111": {
                    "id": "111",
                    "username": "alice",
                    "access_token": "a",
                    "refresh_token": "r",
                    "ip": "1.2.3.4",
                    "verifiedAt": "2024-05-01T12:00:00Z",
                    "avatar": "abc",
                    "note": "kept",
                }
            }
        ),
        encoding="utf-8",
    )
    store = IdentityStore(JsonFileStore(users_file))

    record = store.get("111")
    assert record is not None
    assert record.display_name == "alice"
    assert record.origin_address == "1.2.3.4"
    assert record.avatar_ref == "abc"

    store.save(store.load())
    saved = json.loads(users_file.read_text(encoding="utf-8"))["111"]
    assert saved["username"] == "alice"
    assert saved["ip"] == "1.2.3.4"
    assert saved["note"] == "kept"
    assert "display_name" not in saved


def test_load_keeps_entries_the_model_cannot_read(tmp_path: Path) -> None:
    users_file = tmp_path / "users.json"
    users_file.write_text(
        json.dumps(
            {
                "good": {"access_token": "a"},
                "a": {"refresh_token": "r-a", "verifiedAt": "yesterday"},
                "c": {"access_token": 123, "refresh_token": "r-c"},
                "bad": "not-an-object",
                "": {},
            }
        ),
        encoding="utf-8",
    )
    store = IdentityStore(JsonFileStore(users_file))

    records = store.load()

    assert list(records) == ["good", "a", "c", "bad", ""]
    assert records["good"].display_name == "UnknownUser"
    assert records["good"].origin_address == "Unknown"
    assert records["a"].verified_at == "yesterday"
    assert records["a"].is_durable
    assert records["c"].access_token == "123"
    assert records["bad"].access_token is None
    assert not records["bad"].is_durable


def test_unrelated_mutation_preserves_odd_entries(tmp_path: Path) -> None:
    users_file = tmp_path / "users.json"
    users_file.write_text(
        json.dumps(
            {
                "a": {"refresh_token": "r-a", "verifiedAt": "yesterday"},
                "b": {"refresh_token": "r-b"},
                "c": {"access_token": 123},
                "bad": ["not", "an", "object"],
            }
        ),
        encoding="utf-8",
    )
    store = IdentityStore(JsonFileStore(users_file))

    assert store.remove("b") is True

    saved = json.loads(users_file.read_text(encoding="utf-8"))
    assert sorted(saved) == ["a", "bad", "c"]
    assert saved["a"]["verifiedAt"] == "yesterday"
    assert saved["a"]["refresh_token"] == "r-a"
    assert saved["c"]["access_token"] == "123"
    assert saved["bad"] == ["not", "an", "object"]

    assert store.remove("bad") is True
    assert "bad" not in json.loads(users_file.read_text(encoding="utf-8"))


def test_corrupt_file_loads_as_empty(tmp_path: Path) -> None:
    users_file = tmp_path / "users.json"
    users_file.write_text("{not json", encoding="utf-8")

    assert IdentityStore(JsonFileStore(users_file)).load() == {}


def test_missing_file_loads_as_empty_and_save_creates_parents(tmp_path: Path) -> None:
    backend = JsonFileStore(tmp_path / "nested" / "users.json")
    store = IdentityStore(backend)

    assert store.load() == {}
    store.upsert(make_record("1"))
    assert backend.path.exists()
    assert list(store.load()) == ["1"]


def test_upsert_replaces_and_remove_reports_absence(tmp_path: Path) -> None:
    store = make_store(tmp_path, make_record("1"), make_record("2"))

    store.upsert(make_record("1", display_name="renamed"))
    assert store.get("1").display_name == "renamed"

    assert store.remove("2") is True
    assert store.remove("2") is False
    assert list(store.load()) == ["1"]

    store.clear()
    assert store.load() == {}


def test_backup_path_sits_beside_the_document(tmp_path: Path) -> None:
    backend = JsonFileStore(tmp_path / "users.json")
    assert backend.backup() is None

    backend.write({"a": {"id": "a"}})
    backup = backend.backup()

    assert backup == tmp_path / "users_backup.json"
    assert json.loads(backup.read_text(encoding="utf-8")) == {"a": {"id": "a"}}


def test_group_by_origin_keeps_only_shared_addresses() -> None:
    records = [
        make_record("1", origin_address="1.1.1.1"),
        make_record("2", origin_address="2.2.2.2"),
        make_record("3", origin_address="1.1.1.1"),
    ]

    groups = group_by_origin(records)

    assert list(groups) == ["1.1.1.1"]
    assert [record.id for record in groups["1.1.1.1"]] == ["1", "3"]
