"""
core/document.py -- The shared JSON document behind the credential store and
the resource API.

Both stores read and rewrite the same file, so every read-modify-write goes
through JsonDocument.transaction(), which holds one writer lock per file for
the whole cycle. Two registrations can therefore never interleave their
"does this username exist?" check with each other's write.

Readers never take the lock. Writes go to a sibling temp file which is then
os.replace()d over the original, so a concurrent reader sees either the old
document or the new one, never a truncated file.

Layer rule: core/ imports only stdlib.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from core.errors import StoreError

logger = logging.getLogger("authgate.store")

# One lock per resolved path, shared by every JsonDocument pointing at that
# file, so two objects opened on the same path still serialize their writes.
_locks: dict[Path, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _locks_guard:
        return _locks.setdefault(path, threading.Lock())


class JsonDocument:
    """A JSON object persisted in a single file.

    Usage:
        doc = JsonDocument("db.json")
        data = doc.read()
        with doc.transaction() as data:
            data.setdefault("posts", []).append({"id": 1})
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).resolve()
        self._lock = _lock_for(self.path)

    def read(self) -> dict:
        """Parse and return the whole document.

        A missing file reads as an empty document. Raises StoreError if the
        file cannot be read, is not valid JSON, or is not a JSON object.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StoreError(f"Could not read {self.path.name}") from exc
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StoreError(f"{self.path.name} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{self.path.name} must contain a JSON object")
        return data

    @contextmanager
    def transaction(self) -> Iterator[dict]:
        """Hold the writer lock, yield the document, write it back on success.

        If the with-block raises, nothing is written and the exception
        propagates. A failed write raises StoreError.
        """
        with self._lock:
            data = self.read()
            yield data
            self._write(data)

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Could not write {self.path.name}") from exc
