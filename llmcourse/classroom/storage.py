"""
Progress storage - Persist the progress document under a single key.

Two layers:
- Key-value backends (SQLite on disk, or in memory) that raise StorageError
- ProgressStorage, the gateway that never raises for expected failures

There is no locking. Two processes writing the same key overwrite each other;
the last writer wins.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from llmcourse.schemas import PROGRESS_STORAGE_KEY, ProgressDocument

from .validator import migrate, needs_migration, validate


logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Errors
# -------------------------------------------------------------------------

class StorageError(Exception):
    """Any failure of the underlying key-value store."""


class StorageQuotaExceededError(StorageError):
    """The store has no room for the value."""


class StorageAccessDeniedError(StorageError):
    """The store cannot be opened or written (permissions, read-only media)."""


# -------------------------------------------------------------------------
# Key-value backends
# -------------------------------------------------------------------------

class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """
    Volatile store, used for tests and as the memory-only fallback.

    Args:
        quota_bytes: Total size budget across all values (None for unlimited)
        access_denied: Simulate a restricted context where every call fails
    """

    def __init__(self, quota_bytes: Optional[int] = None, access_denied: bool = False):
        self.items: dict[str, str] = {}
        self.quota_bytes = quota_bytes
        self.access_denied = access_denied

    def _check_access(self):
        if self.access_denied:
            raise StorageAccessDeniedError("Storage access denied")

    def get_item(self, key: str) -> Optional[str]:
        self._check_access()
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_access()
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self.items.items() if k != key)
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Quota of {self.quota_bytes} bytes exceeded"
                )
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self._check_access()
        self.items.pop(key, None)


class SQLiteKeyValueStore:
    """
    Durable store backed by a single SQLite table.

    The database file and table are created on first use, so a store pointing
    at an unwritable location only fails when it is actually accessed.
    """

    def __init__(self, db_path: Path, quota_bytes: Optional[int] = None):
        """
        Args:
            db_path: Path to the SQLite file (parent directories are created)
            quota_bytes: Total size budget across all values (None for unlimited)
        """
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes
        self._ready = False

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageAccessDeniedError(f"Cannot create {self.db_path.parent}: {e}") from e

        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise _classify_sqlite_error(e) from e
        finally:
            conn.close()
        self._ready = True

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise _classify_sqlite_error(e) from e

    def _get_connection(self) -> sqlite3.Connection:
        if not self._ready:
            self._ensure_database()
        return self._connect()

    def get_item(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None
        except sqlite3.Error as e:
            raise _classify_sqlite_error(e) from e
        finally:
            conn.close()

    def set_item(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            if self.quota_bytes is not None:
                row = conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(CAST(value AS BLOB))), 0) FROM kv_store WHERE key != ?",
                    (key,)
                ).fetchone()
                if row[0] + len(value.encode("utf-8")) > self.quota_bytes:
                    raise StorageQuotaExceededError(
                        f"Quota of {self.quota_bytes} bytes exceeded"
                    )
            conn.execute(
                """INSERT INTO kv_store (key, value) VALUES (?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                (key, value)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise _classify_sqlite_error(e) from e
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise _classify_sqlite_error(e) from e
        finally:
            conn.close()


def _classify_sqlite_error(error: sqlite3.Error) -> StorageError:
    message = str(error).lower()
    if "full" in message:
        return StorageQuotaExceededError(str(error))
    if any(term in message for term in ("readonly", "read-only", "unable to open", "permission")):
        return StorageAccessDeniedError(str(error))
    return StorageError(str(error))


def is_storage_available(store: KeyValueStore) -> bool:
    """Probe the store with a throwaway write and delete."""
    test_key = "__storage_test__"
    try:
        store.set_item(test_key, "test")
        store.remove_item(test_key)
        return True
    except StorageError:
        return False


# -------------------------------------------------------------------------
# Gateway
# -------------------------------------------------------------------------

class ProgressStorage:
    """
    Save, load and clear the progress document.

    Expected failures are logged and reported as False / None; callers decide
    how to recover.
    """

    def __init__(self, store: KeyValueStore, key: str = PROGRESS_STORAGE_KEY):
        self.store = store
        self.key = key

    def save(self, doc: ProgressDocument) -> bool:
        """Stamp lastUpdated and write the document. Returns success."""
        if not isinstance(doc, ProgressDocument):
            logger.error("Invalid progress data: must be a ProgressDocument")
            return False
        return self._write(doc.to_wire())

    def _write(self, data: dict[str, Any]) -> bool:
        try:
            data_to_save = {**data, "lastUpdated": datetime.now(timezone.utc).isoformat()}
            serialized = json.dumps(data_to_save, ensure_ascii=False)
            self.store.set_item(self.key, serialized)
        except StorageQuotaExceededError as e:
            logger.error(f"Storage quota exceeded. Unable to save progress: {e}")
            return False
        except StorageAccessDeniedError as e:
            logger.error(f"Storage access denied. Unable to save progress: {e}")
            return False
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Unexpected error during save: {e}")
            return False

        logger.info(f"Progress saved at {data_to_save['lastUpdated']}")
        return True

    def load(self) -> Optional[ProgressDocument]:
        """
        Read the stored document.

        Returns None when:
        - nothing is stored (first-time learner)
        - the stored text is not JSON (the entry is deleted)
        - migration fails
        - the data is structurally invalid (the entry is kept for inspection)
        - the store cannot be read
        """
        try:
            stored = self.store.get_item(self.key)
        except StorageAccessDeniedError as e:
            logger.error(f"Storage access denied. Unable to load progress: {e}")
            return None
        except StorageError as e:
            logger.error(f"Unexpected error during load: {e}")
            return None

        if stored is None:
            logger.info("No progress data found - first-time learner")
            return None

        try:
            data = json.loads(stored)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse progress data JSON: {e}")
            logger.warning("Corrupted data detected. Clearing invalid data.")
            self.clear()
            return None

        if needs_migration(data):
            try:
                data = migrate(data)
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Migration failed: {e}")
                return None
            logger.info(f"Migration completed, saving v{data['schemaVersion']} data")
            self._write(data)

        result = validate(data)
        if not result.valid:
            logger.error(f"Progress data validation failed: {result.errors}")
            logger.warning("Data structure is invalid. Consider resetting progress.")
            return None

        try:
            doc = ProgressDocument.from_wire(data)
        except ValidationError as e:
            logger.error(f"Progress data could not be parsed: {e}")
            logger.warning("Data structure is invalid. Consider resetting progress.")
            return None

        logger.info("Progress loaded")
        return doc

    def clear(self) -> bool:
        """Delete the stored document. Returns False only if deletion fails."""
        try:
            self.store.remove_item(self.key)
        except StorageError as e:
            logger.error(f"Error clearing progress: {e}")
            return False
        logger.info("Progress data cleared from storage")
        return True
