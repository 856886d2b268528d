"""Key-value storage and the versioned database that buffers transaction writes."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from ariachain.transaction import KVRWSet

log = logging.getLogger(__name__)


class HashMapStorage:
    """An in-memory key-value store.

    The table name is accepted for interface compatibility, but every table
    shares one key namespace.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()
        log.info("hash map database start.")

    def select(self, key: str, table: str) -> str:
        """Return the value stored under ``key``, or an empty string."""
        with self._lock:
            return self._data.get(key, "")

    def update(self, key: str, value: str, table: str) -> None:
        """Store ``value`` under ``key``."""
        with self._lock:
            self._data[key] = value

    def remove(self, key: str, table: str) -> bool:
        """Delete ``key``; return whether it was present."""
        with self._lock:
            return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


class VersionedDB:
    """Buffers each transaction's writes and applies them on commit.

    Once a commit or abort has happened, the next buffered update starts a new
    round and discards every buffer of the previous one.
    """

    def __init__(self, storage: Optional[HashMapStorage] = None) -> None:
        self.storage = storage if storage is not None else HashMapStorage()
        self._buffer: Dict[int, KVRWSet] = {}
        self._commit_phase = False
        self._lock = threading.Lock()

    def _clear_if_committing(self) -> None:
        if self._commit_phase:
            log.debug("clear buffer")
            self._buffer.clear()
            self._commit_phase = False

    def buffer_updates(self, tid: int, rwset: KVRWSet) -> bool:
        """Remember ``rwset`` as the pending writes of transaction ``tid``."""
        with self._lock:
            self._clear_if_committing()
            self._buffer[tid] = rwset
        return True

    def commit_update(self, tid: int) -> bool:
        """Apply the buffered writes of ``tid`` to storage.

        Raises KeyError when nothing was buffered for ``tid``.
        """
        with self._lock:
            self._commit_phase = True
            try:
                rwset = self._buffer[tid]
            except KeyError:
                raise KeyError(f"no buffered updates for transaction {tid}") from None
        for write in rwset.writes:
            if write.is_delete:
                self.storage.remove(write.key, write.table)
            else:
                self.storage.update(write.key, write.value, write.table)
        return True

    def abort_update(self, tid: int) -> None:
        """Drop transaction ``tid``: its writes are never applied."""
        with self._lock:
            self._commit_phase = True


_instance: Optional[VersionedDB] = None
_instance_lock = threading.Lock()


def get_db_instance() -> VersionedDB:
    """Return the process-wide database, creating it on first use."""
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                _instance = VersionedDB(HashMapStorage())
    return _instance