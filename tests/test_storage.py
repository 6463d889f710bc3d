from pathlib import Path

import pytest

from ruang_hampa.data.errors import StorageError
from ruang_hampa.data.storage import FileKeyValueStore, InMemoryKeyValueStore


def test_file_store_round_trip(tmp_path: Path) -> None:
    store = FileKeyValueStore(tmp_path / "saves")

    assert store.read("ruang-hampa-save") is None
    assert not store.exists("ruang-hampa-save")

    store.write("ruang-hampa-save", '{"currentNodeId": "START"}')

    assert store.exists("ruang-hampa-save")
    assert store.read("ruang-hampa-save") == '{"currentNodeId": "START"}'
    assert (tmp_path / "saves" / "ruang-hampa-save.json").exists()
    assert not list((tmp_path / "saves").glob("*.tmp"))


def test_file_store_treats_undecodable_record_as_missing(tmp_path: Path) -> None:
    (tmp_path / "ruang-hampa-save.json").write_bytes(b"\xff\xfe{bad")
    store = FileKeyValueStore(tmp_path)

    assert store.exists("ruang-hampa-save")
    assert store.read("ruang-hampa-save") is None


def test_file_store_delete_is_idempotent(tmp_path: Path) -> None:
    store = FileKeyValueStore(tmp_path)
    store.write("ruang-hampa-save", "{}")

    store.delete("ruang-hampa-save")
    store.delete("ruang-hampa-save")

    assert not store.exists("ruang-hampa-save")


def test_file_store_rejects_path_like_keys(tmp_path: Path) -> None:
    store = FileKeyValueStore(tmp_path)

    with pytest.raises(ValueError):
        store.write("../escape", "{}")


def test_file_store_write_failure_raises_storage_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory", encoding="utf-8")
    store = FileKeyValueStore(blocker)

    with pytest.raises(StorageError):
        store.write("ruang-hampa-save", "{}")


def test_memory_store_can_simulate_failures() -> None:
    store = InMemoryKeyValueStore({"a": "1"})
    assert store.read("a") == "1"

    store.fail_writes = True
    with pytest.raises(StorageError):
        store.write("a", "2")
    assert store.read("a") == "1"
