"""Key-value storage backends for locally persisted runtime data."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Protocol

from playhost.diagnostics.json_codec import dumps_bytes, loads

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """Minimal JSON document store keyed by a fixed string."""

    def read(self, key: str) -> Any | None:
        """Return the stored document or None when absent."""

    def write(self, key: str, value: Any) -> None:
        """Replace the stored document."""

    def remove(self, key: str) -> None:
        """Delete the stored document if present."""


class MemoryStorage:
    """Process-local storage; documents are kept encoded like on disk."""

    def __init__(self) -> None:
        self._documents: dict[str, bytes] = {}

    def read(self, key: str) -> Any | None:
        raw = self._documents.get(key)
        return None if raw is None else loads(raw)

    def write(self, key: str, value: Any) -> None:
        self._documents[key] = dumps_bytes(value)

    def remove(self, key: str) -> None:
        self._documents.pop(key, None)

    def raw(self, key: str) -> bytes | None:
        return self._documents.get(key)


class JsonFileStorage:
    """One `<key>.json` file per key under a root directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self._root / f"{key}.json"

    def read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return loads(path.read_bytes())

    def write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_bytes(dumps_bytes(value, pretty=True))
        os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
