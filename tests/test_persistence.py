"""
Tests for notification history persistence.
"""

import pytest

from toastline.core.config import NotificationConfig
from toastline.notifications.models import NotificationSummary
from toastline.notifications.persistence import (
    KeyValueStore,
    MemoryKeyValueStore,
    NotificationStoreError,
    PersistenceStore,
    SQLiteKeyValueStore,
    StorageQuotaExceeded,
    create_backend,
)


def _summary(notification_id, created_at=0):
    return NotificationSummary(id=notification_id, title=notification_id.upper(),
                               message="m", created_at=created_at)


class TestPersistenceStore:
    """Test the bounded history."""

    def setup_method(self):
        self.config = NotificationConfig(max_stored_notifications=3)
        self.backend = MemoryKeyValueStore()
        self.store = PersistenceStore(self.backend, lambda: self.config)

    def test_bounded_oldest_first(self):
        for name in ["a", "b", "c", "d"]:
            assert self.store.append(_summary(name)) is True

        assert [s.id for s in self.store.load_all()] == ["b", "c", "d"]

    def test_same_id_moves_to_end(self):
        for name in ["a", "b", "a"]:
            self.store.append(_summary(name))

        assert [s.id for s in self.store.load_all()] == ["b", "a"]

    def test_empty_history(self):
        assert self.store.load_all() == []

    def test_corrupt_data_yields_empty(self):
        self.backend.set("notifications", b"{not json")
        assert self.store.load_all() == []

        self.backend.set("notifications", b'{"id": "a"}')
        assert self.store.load_all() == []

    def test_invalid_entries_are_skipped(self):
        self.backend.set("notifications", b'[{"title": "no id"}, {"id": "a", "createdAt": 5}]')

        summaries = self.store.load_all()

        assert [s.id for s in summaries] == ["a"]
        assert summaries[0].created_at == 5

    def test_storage_key_from_config(self):
        self.config = NotificationConfig(storage_key="compliance-notifications")
        self.store.append(_summary("a"))

        assert self.backend.get("compliance-notifications") is not None
        assert self.backend.get("notifications") is None

    def test_quota_failure_returns_false(self):
        store = PersistenceStore(MemoryKeyValueStore(max_bytes=10), lambda: self.config)
        assert store.append(_summary("a")) is False
        assert store.load_all() == []

    def test_backend_failure_returns_false(self):
        class BrokenBackend(KeyValueStore):
            def get(self, key):
                raise NotificationStoreError("disk gone")

            def set(self, key, value):
                raise NotificationStoreError("disk gone")

            def delete(self, key):
                raise NotificationStoreError("disk gone")

        store = PersistenceStore(BrokenBackend(), lambda: self.config)

        assert store.append(_summary("a")) is False
        assert store.load_all() == []
        assert store.clear() is False

    def test_clear(self):
        self.store.append(_summary("a"))
        assert self.store.clear() is True
        assert self.store.load_all() == []


class TestSQLiteKeyValueStore:
    """Test the SQLite backend."""

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "history" / "toastline.db"
        config = NotificationConfig()

        PersistenceStore(SQLiteKeyValueStore(str(path)), lambda: config).append(_summary("a", 42))
        reopened = PersistenceStore(SQLiteKeyValueStore(str(path)), lambda: config)

        summaries = reopened.load_all()
        assert [s.id for s in summaries] == ["a"]
        assert summaries[0].created_at == 42

    def test_size_ceiling(self, tmp_path):
        backend = SQLiteKeyValueStore(str(tmp_path / "kv.db"), max_bytes=4)
        with pytest.raises(StorageQuotaExceeded):
            backend.set("k", b"too large")

    def test_delete(self, tmp_path):
        backend = SQLiteKeyValueStore(str(tmp_path / "kv.db"))
        backend.set("k", b"v")
        backend.delete("k")
        assert backend.get("k") is None


class TestCreateBackend:
    """Test backend selection."""

    def test_memory(self):
        assert isinstance(create_backend("memory"), MemoryKeyValueStore)

    def test_sqlite(self, tmp_path):
        backend = create_backend("sqlite", str(tmp_path / "kv.db"), max_bytes=1024)
        assert isinstance(backend, SQLiteKeyValueStore)
        assert backend.max_bytes == 1024

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_backend("redis")
