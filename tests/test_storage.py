"""
Tests for progress persistence: key-value backends and ProgressStorage.
"""

import json
import logging
from datetime import datetime

import pytest

from llmcourse.classroom import validator
from llmcourse.classroom import (
    MemoryKeyValueStore,
    ProgressStorage,
    SQLiteKeyValueStore,
    StorageAccessDeniedError,
    StorageQuotaExceededError,
    complete_section,
    is_storage_available,
)
from llmcourse.schemas import PROGRESS_STORAGE_KEY, ProgressDocument


def _same_except_timestamp(a: ProgressDocument, b: ProgressDocument) -> bool:
    return a.model_copy(update={"last_updated": b.last_updated}) == b


class TestMemoryKeyValueStore:
    """Test the in-memory backend."""

    def test_set_get_remove(self):
        store = MemoryKeyValueStore()
        store.set_item("k", "v")
        assert store.get_item("k") == "v"
        store.remove_item("k")
        assert store.get_item("k") is None

    def test_remove_missing_key(self):
        MemoryKeyValueStore().remove_item("missing")

    def test_quota(self):
        store = MemoryKeyValueStore(quota_bytes=10)
        store.set_item("k", "12345")
        with pytest.raises(StorageQuotaExceededError):
            store.set_item("other", "1234567")
        # replacing a value only counts the new size
        store.set_item("k", "1234567890")

    def test_access_denied(self):
        store = MemoryKeyValueStore(access_denied=True)
        with pytest.raises(StorageAccessDeniedError):
            store.get_item("k")
        with pytest.raises(StorageAccessDeniedError):
            store.set_item("k", "v")


class TestSQLiteKeyValueStore:
    """Test the SQLite backend."""

    def test_set_get_remove(self, tmp_path):
        store = SQLiteKeyValueStore(tmp_path / "kv.db")
        assert store.get_item("k") is None
        store.set_item("k", "v1")
        store.set_item("k", "v2")
        assert store.get_item("k") == "v2"
        store.remove_item("k")
        assert store.get_item("k") is None

    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "kv.db"
        store = SQLiteKeyValueStore(db_path)
        store.set_item("k", "v")
        assert db_path.exists()

    def test_persists_across_instances(self, tmp_path):
        SQLiteKeyValueStore(tmp_path / "kv.db").set_item("k", "kept")
        assert SQLiteKeyValueStore(tmp_path / "kv.db").get_item("k") == "kept"

    def test_quota(self, tmp_path):
        store = SQLiteKeyValueStore(tmp_path / "kv.db", quota_bytes=8)
        store.set_item("a", "1234")
        with pytest.raises(StorageQuotaExceededError):
            store.set_item("b", "12345")
        assert store.get_item("b") is None

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = SQLiteKeyValueStore(blocker / "kv.db")
        with pytest.raises(StorageAccessDeniedError):
            store.set_item("k", "v")


class TestStorageAvailability:
    """Test is_storage_available probe."""

    def test_available(self, memory_store):
        assert is_storage_available(memory_store)
        assert memory_store.items == {}

    def test_unavailable(self):
        assert not is_storage_available(MemoryKeyValueStore(access_denied=True))


class TestProgressStorageSave:
    """Test ProgressStorage.save()."""

    def test_save_writes_json_under_key(self, storage, memory_store, initial_doc):
        assert storage.save(initial_doc)
        stored = json.loads(memory_store.items[PROGRESS_STORAGE_KEY])
        assert stored["learnerVariant"] == "A"
        assert stored["schemaVersion"] == 1

    def test_save_stamps_last_updated(self, storage, memory_store, initial_doc):
        storage.save(initial_doc)
        stored = json.loads(memory_store.items[PROGRESS_STORAGE_KEY])
        loaded = storage.load()
        assert loaded.last_updated >= initial_doc.last_updated
        assert datetime.fromisoformat(stored["lastUpdated"]) == loaded.last_updated

    def test_save_does_not_modify_document(self, storage, initial_doc):
        before = initial_doc.last_updated
        storage.save(initial_doc)
        assert initial_doc.last_updated == before

    def test_save_rejects_non_document(self, storage, memory_store):
        assert not storage.save({"learnerVariant": "A"})
        assert memory_store.items == {}

    def test_quota_exceeded(self, initial_doc, caplog):
        storage = ProgressStorage(MemoryKeyValueStore(quota_bytes=100))
        with caplog.at_level(logging.ERROR):
            assert not storage.save(initial_doc)
        assert "quota exceeded" in caplog.text

    def test_access_denied(self, initial_doc, caplog):
        storage = ProgressStorage(MemoryKeyValueStore(access_denied=True))
        with caplog.at_level(logging.ERROR):
            assert not storage.save(initial_doc)
        assert "access denied" in caplog.text

    def test_custom_key(self, memory_store, initial_doc):
        storage = ProgressStorage(memory_store, key="other_key")
        storage.save(initial_doc)
        assert set(memory_store.items) == {"other_key"}


class TestProgressStorageLoad:
    """Test ProgressStorage.load() outcomes."""

    def test_round_trip(self, storage, initial_doc, curriculum):
        doc = complete_section(1, "s1", initial_doc, curriculum)
        storage.save(doc)
        assert _same_except_timestamp(storage.load(), doc)

    def test_round_trip_sqlite(self, sqlite_storage, initial_doc):
        sqlite_storage.save(initial_doc)
        assert _same_except_timestamp(sqlite_storage.load(), initial_doc)

    def test_nothing_stored(self, storage):
        assert storage.load() is None

    def test_corrupt_json_is_cleared(self, storage, memory_store, caplog):
        memory_store.items[PROGRESS_STORAGE_KEY] = "{not json"
        with caplog.at_level(logging.WARNING):
            assert storage.load() is None
        assert "Corrupted data detected" in caplog.text
        assert PROGRESS_STORAGE_KEY not in memory_store.items

        caplog.clear()
        assert storage.load() is None
        assert "Corrupted" not in caplog.text

    def test_invalid_structure_is_kept(self, storage, memory_store, initial_doc):
        wire = initial_doc.to_wire()
        wire["learnerVariant"] = "Z"
        raw = json.dumps(wire)
        memory_store.items[PROGRESS_STORAGE_KEY] = raw
        assert storage.load() is None
        assert memory_store.items[PROGRESS_STORAGE_KEY] == raw

    def test_non_object_json(self, storage, memory_store):
        memory_store.items[PROGRESS_STORAGE_KEY] = "[1, 2, 3]"
        assert storage.load() is None

    def test_access_denied(self, initial_doc):
        store = MemoryKeyValueStore()
        storage = ProgressStorage(store)
        storage.save(initial_doc)
        store.access_denied = True
        assert storage.load() is None


class TestProgressStorageMigration:
    """Test migration on load."""

    def test_missing_version_is_migrated_and_saved(self, storage, memory_store, initial_doc):
        wire = json.loads(json.dumps(initial_doc.to_wire()))
        del wire["schemaVersion"]
        memory_store.items[PROGRESS_STORAGE_KEY] = json.dumps(wire)

        loaded = storage.load()
        assert loaded is not None
        assert loaded.schema_version == 1
        assert json.loads(memory_store.items[PROGRESS_STORAGE_KEY])["schemaVersion"] == 1

    def test_registered_step_applied(self, storage, memory_store, initial_doc, monkeypatch):
        def v1_to_v2(data):
            data = dict(data)
            prefs = dict(data.pop("legacyPreferences"))
            data["preferences"] = {
                "animationSpeed": prefs["speed"],
                "autoplayAnimations": prefs["autoplay"],
            }
            return data

        monkeypatch.setattr(validator, "SCHEMA_VERSION", 2)
        monkeypatch.setitem(validator.MIGRATIONS, 1, v1_to_v2)

        wire = json.loads(json.dumps(initial_doc.to_wire()))
        del wire["preferences"]
        wire["legacyPreferences"] = {"speed": "slow", "autoplay": False}
        memory_store.items[PROGRESS_STORAGE_KEY] = json.dumps(wire)

        loaded = storage.load()
        assert loaded.schema_version == 2
        assert loaded.preferences.animation_speed.value == "slow"
        assert loaded.preferences.autoplay_animations is False

        stored = json.loads(memory_store.items[PROGRESS_STORAGE_KEY])
        assert stored["schemaVersion"] == 2
        assert "legacyPreferences" not in stored

    def test_migrated_document_saved_before_validation(self, storage, memory_store, initial_doc, monkeypatch):
        def v1_to_v2(data):
            return {**data, "learnerVariant": "C"}

        monkeypatch.setattr(validator, "SCHEMA_VERSION", 2)
        monkeypatch.setitem(validator.MIGRATIONS, 1, v1_to_v2)
        memory_store.items[PROGRESS_STORAGE_KEY] = json.dumps(initial_doc.to_wire())

        assert storage.load() is None
        stored = json.loads(memory_store.items[PROGRESS_STORAGE_KEY])
        assert stored["schemaVersion"] == 2
        assert stored["learnerVariant"] == "C"

    def test_migration_failure(self, storage, memory_store, initial_doc, monkeypatch):
        monkeypatch.setattr(validator, "SCHEMA_VERSION", 2)
        raw = json.dumps(initial_doc.to_wire())
        memory_store.items[PROGRESS_STORAGE_KEY] = raw
        assert storage.load() is None
        assert memory_store.items[PROGRESS_STORAGE_KEY] == raw


class TestProgressStorageClear:
    """Test ProgressStorage.clear()."""

    def test_clear(self, storage, memory_store, initial_doc):
        storage.save(initial_doc)
        assert storage.clear()
        assert memory_store.items == {}

    def test_clear_when_empty(self, storage):
        assert storage.clear()

    def test_clear_access_denied(self):
        storage = ProgressStorage(MemoryKeyValueStore(access_denied=True))
        assert not storage.clear()
