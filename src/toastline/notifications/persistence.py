"""
Notification history persistence.

The history is a JSON array of archived notification summaries stored under
one key of a key-value store, oldest first, bounded in length.
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from toastline.core.config import NotificationConfig
from toastline.notifications.models import NotificationSummary

logger = logging.getLogger(__name__)


class NotificationStoreError(Exception):
    """Raised when a key-value backend cannot read or write."""
    pass


class StorageQuotaExceeded(NotificationStoreError):
    """Raised when a value is larger than the store's size ceiling."""
    pass


class KeyValueStore(ABC):
    """Durable key-value storage with a per-value size ceiling."""

    def __init__(self, max_bytes: int = 5 * 1024 * 1024):
        self.max_bytes = max_bytes

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value for key, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """
        Store value under key.

        Raises:
            StorageQuotaExceeded: If value exceeds max_bytes
            NotificationStoreError: If the backend fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        pass

    def _check_size(self, key: str, value: bytes) -> None:
        if len(value) > self.max_bytes:
            raise StorageQuotaExceeded(
                f"Value for {key!r} is {len(value)} bytes (limit {self.max_bytes})"
            )


class MemoryKeyValueStore(KeyValueStore):
    """In-memory store for tests and ephemeral engines."""

    def __init__(self, max_bytes: int = 5 * 1024 * 1024):
        super().__init__(max_bytes)
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._check_size(key, value)
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteKeyValueStore(KeyValueStore):
    """
    Key-value store backed by a SQLite table.

    Survives process restarts; one row per key.
    """

    def __init__(self, db_path: str = "data/toastline.db", max_bytes: int = 5 * 1024 * 1024):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
            max_bytes: Size ceiling for a single value
        """
        super().__init__(max_bytes)
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                )
            """)
            conn.commit()

        logger.info(f"Initialized notification store at {self.db_path}")

    def get(self, key: str) -> Optional[bytes]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise NotificationStoreError(f"Failed to read {key!r}: {e}") from e
        return bytes(row[0]) if row else None

    def set(self, key: str, value: bytes) -> None:
        self._check_size(key, value)
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                    (key, sqlite3.Binary(value)),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise NotificationStoreError(f"Failed to write {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise NotificationStoreError(f"Failed to delete {key!r}: {e}") from e


class PersistenceStore:
    """
    Bounded history of archived notifications.

    Storage key and bound are read from the engine configuration on every
    call. Failures never propagate: writes return False and reads return an
    empty history.
    """

    def __init__(self, backend: KeyValueStore, settings: Callable[[], NotificationConfig]):
        """
        Initialize persistence store.

        Args:
            backend: Key-value storage
            settings: Returns the current engine configuration
        """
        self.backend = backend
        self._settings = settings

    def append(self, summary: NotificationSummary) -> bool:
        """
        Append a summary, trimming the oldest entries over the bound.

        An entry with the same id is moved to the end instead of duplicated.

        Returns:
            True if the history was written
        """
        return self.extend([summary])

    def extend(self, summaries: Iterable[NotificationSummary]) -> bool:
        """Append several summaries in order with a single write."""
        stored = self.load_all()
        for summary in summaries:
            stored = [s for s in stored if s.id != summary.id]
            stored.append(summary)
        return self._write(stored)

    def load_all(self) -> List[NotificationSummary]:
        """
        Load the history, oldest first.

        Unreadable or corrupt data yields an empty list.
        """
        key = self._settings().storage_key
        try:
            raw = self.backend.get(key)
        except NotificationStoreError as e:
            logger.error(f"Error loading stored notifications: {e}")
            return []
        if not raw:
            return []

        try:
            entries = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Stored notifications under {key!r} are corrupt: {e}")
            return []
        if not isinstance(entries, list):
            logger.error(f"Stored notifications under {key!r} are not a list")
            return []

        summaries = []
        for entry in entries:
            try:
                summaries.append(NotificationSummary.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored notification: {e}")
        return summaries

    def clear(self) -> bool:
        """Delete the whole history."""
        try:
            self.backend.delete(self._settings().storage_key)
        except NotificationStoreError as e:
            logger.error(f"Error clearing stored notifications: {e}")
            return False
        return True

    def _write(self, summaries: List[NotificationSummary]) -> bool:
        config = self._settings()
        limit = config.max_stored_notifications
        if len(summaries) > limit:
            summaries = summaries[len(summaries) - limit:]

        try:
            payload = json.dumps([s.to_json_dict() for s in summaries]).encode("utf-8")
            self.backend.set(config.storage_key, payload)
        except (TypeError, ValueError) as e:
            logger.error(f"Error serializing notifications: {e}")
            return False
        except NotificationStoreError as e:
            logger.error(f"Error storing notification: {e}")
            return False

        logger.debug(f"Stored {len(summaries)} notifications under {config.storage_key!r}")
        return True


def create_backend(backend: str = "memory", path: str = "data/toastline.db",
                   max_bytes: int = 5 * 1024 * 1024) -> KeyValueStore:
    """
    Build a key-value backend by name.

    Args:
        backend: "memory" or "sqlite"
        path: SQLite file path
        max_bytes: Size ceiling per value

    Returns:
        KeyValueStore instance
    """
    if backend == "sqlite":
        return SQLiteKeyValueStore(db_path=path, max_bytes=max_bytes)
    if backend == "memory":
        return MemoryKeyValueStore(max_bytes=max_bytes)
    raise ValueError(f"Unknown storage backend: {backend}")
