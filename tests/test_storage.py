"""
Tests for the local key-value stores.
"""

import json

import pytest

from daybook.services.storage import (
    CorruptStoreError,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    StorageError,
)


class TestInMemoryStore:

    def test_get_missing_key(self):
        assert InMemoryStore().get("nope") is None

    def test_set_get_delete(self):
        store = InMemoryStore()
        store.set("ledger", "[]")
        assert store.get("ledger") == "[]"
        assert store.keys() == ["ledger"]
        assert store.delete("ledger") is True
        assert store.delete("ledger") is False
        assert store.get("ledger") is None

    def test_initial_data_is_copied(self):
        initial = {"a": "1"}
        store = InMemoryStore(initial)
        store.set("b", "2")
        assert initial == {"a": "1"}

    def test_is_a_key_value_store(self):
        assert isinstance(InMemoryStore(), KeyValueStore)


class TestJsonFileStore:

    @pytest.fixture
    def path(self, tmp_path):
        return tmp_path / "nested" / "storage.json"

    def test_missing_file_reads_as_empty(self, path):
        store = JsonFileStore(path)
        assert store.get("ledger") is None
        assert store.keys() == []
        assert not path.exists()

    def test_set_creates_file_and_parents(self, path):
        JsonFileStore(path).set("ledger", '[{"id": "a"}]')
        assert json.loads(path.read_text(encoding="utf-8")) == {"ledger": '[{"id": "a"}]'}

    def test_values_survive_a_new_instance(self, path):
        JsonFileStore(path).set("greeting", "안녕하세요")
        assert JsonFileStore(path).get("greeting") == "안녕하세요"

    def test_delete_rewrites_file(self, path):
        store = JsonFileStore(path)
        store.set("a", "1")
        store.set("b", "2")
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert JsonFileStore(path).keys() == ["b"]

    def test_no_temporary_files_left_behind(self, path):
        store = JsonFileStore(path)
        for i in range(3):
            store.set("k", str(i))
        assert [p.name for p in path.parent.iterdir()] == ["storage.json"]

    def test_invalid_json_raises_corrupt_store(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptStoreError):
            JsonFileStore(path).get("ledger")

    def test_non_string_values_raise_corrupt_store(self, path):
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"ledger": [1, 2, 3]}), encoding="utf-8")
        with pytest.raises(CorruptStoreError):
            JsonFileStore(path).keys()

    def test_corrupt_store_is_a_storage_error(self):
        assert issubclass(CorruptStoreError, StorageError)

    def test_set_replaces_a_corrupt_document(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("[]", encoding="utf-8")
        store = JsonFileStore(path)
        store.set("ledger", "[]")
        assert json.loads(path.read_text(encoding="utf-8")) == {"ledger": "[]"}
        assert store.get("ledger") == "[]"

    def test_expands_user_in_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = JsonFileStore("~/.daybook/storage.json")
        assert store.path == tmp_path / ".daybook" / "storage.json"
