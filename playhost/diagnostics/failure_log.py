"""Bounded persisted failure log (drop-oldest on insert)."""

from __future__ import annotations

import logging
from typing import Any

import orjson

from playhost.api.failures import FailureRecord
from playhost.diagnostics.storage import KeyValueStorage
from playhost.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable

_LOG = logging.getLogger("playhost.failures")

FAILURE_LOG_KEY = "playhost_session_failures"
FAILURE_LOG_CAPACITY = 50

_READ_ERRORS = (*RECOVERABLE_RUNTIME_ERRORS, orjson.JSONDecodeError)


class PersistedFailureLog:
    """Read-modify-write list of failure payloads under one storage key.

    The bound is enforced on every insert; last write wins.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = FAILURE_LOG_KEY,
        capacity: int = FAILURE_LOG_CAPACITY,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._storage = storage
        self._key = key
        self._capacity = int(capacity)

    @property
    def key(self) -> str:
        return self._key

    @property
    def capacity(self) -> int:
        return self._capacity

    def entries(self) -> list[dict[str, Any]]:
        """Return stored payloads oldest first; unreadable logs read as empty."""
        try:
            stored = self._storage.read(self._key)
        except _READ_ERRORS:
            log_recoverable(_LOG, f"failure_log_read_failed key={self._key}", level=logging.WARNING)
            return []
        if not isinstance(stored, list):
            return []
        return [entry for entry in stored if isinstance(entry, dict)]

    def records(self) -> list[FailureRecord]:
        out: list[FailureRecord] = []
        for entry in self.entries():
            try:
                out.append(FailureRecord.from_payload(entry))
            except (KeyError, TypeError, ValueError):
                _LOG.debug("failure_log_entry_skipped entry=%r", entry)
        return out

    def append(self, record: FailureRecord) -> bool:
        """Append one record, evicting the oldest beyond capacity."""
        entries = self.entries()
        entries.append(record.to_payload())
        entries = entries[-self._capacity :]
        return self._write(entries)

    def update(self, record: FailureRecord) -> bool:
        """Rewrite a stored record in place (e.g. after it was resolved)."""
        entries = self.entries()
        for index, entry in enumerate(entries):
            if entry.get("id") == record.id:
                entries[index] = record.to_payload()
                return self._write(entries)
        return False

    def clear(self) -> None:
        try:
            self._storage.remove(self._key)
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(_LOG, f"failure_log_clear_failed key={self._key}", level=logging.WARNING)

    def _write(self, entries: list[dict[str, Any]]) -> bool:
        try:
            self._storage.write(self._key, entries)
        except (*RECOVERABLE_RUNTIME_ERRORS, orjson.JSONEncodeError):
            log_recoverable(_LOG, f"failure_log_write_failed key={self._key}", level=logging.WARNING)
            return False
        return True
