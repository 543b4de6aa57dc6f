"""Application storage – FileStorageAdapter.

Persistent key/value store laid out like browser local storage: a single
JSON object on disk maps namespaced keys (``"<prefix>:<key>"``) to JSON
strings, each one an envelope::

    {"data": <value>, "timestamp": <epoch ms>, "version": "1.0.0"}

Several adapters with different prefixes can share one file; ``clear`` and
``get_all_keys`` only see their own prefix.
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from flagcore.kernel.errors import SerializationError, StorageError
from flagcore.kernel.time import Clock, SystemClock
from flagcore.observability.logging import get_logger

__all__ = ["FileStorageAdapter"]

logger = get_logger(__name__)


class FileStorageAdapter:
    """JSON-file-backed :class:`StorageAdapter`.

    Parameters
    ----------
    path:
        Location of the JSON file; created (with parents) on first write.
    prefix:
        Namespace prepended to every key.
    clock:
        Source of the envelope timestamp.
    """

    VERSION = "1.0.0"

    def __init__(
        self,
        path: str | os.PathLike[str],
        prefix: str = "feature-flags",
        clock: Clock | None = None,
    ) -> None:
        self._path = Path(path)
        self._prefix = prefix
        self._clock: Clock = clock or SystemClock()

    @property
    def path(self) -> Path:
        return self._path

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    # ------------------------------------------------------------------
    # StorageAdapter
    # ------------------------------------------------------------------

    def get_item(self, key: str) -> Any:
        raw = self._read_all().get(self._key(key))
        if raw is None:
            return None
        try:
            envelope = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("flag_storage.corrupt_entry", key=key, path=str(self._path))
            return None
        if not isinstance(envelope, dict) or "data" not in envelope:
            logger.warning("flag_storage.corrupt_entry", key=key, path=str(self._path))
            return None
        return envelope["data"]

    def set_item(self, key: str, value: Any) -> None:
        envelope = {
            "data": value,
            "timestamp": int(self._clock.timestamp() * 1000),
            "version": self.VERSION,
        }
        try:
            serialized = json.dumps(envelope)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Value for '{key}' is not JSON-serialisable",
                payload_type=type(value).__name__,
                cause=exc,
            ) from exc
        entries = self._read_all()
        entries[self._key(key)] = serialized
        self._write_all(entries)

    def remove_item(self, key: str) -> None:
        entries = self._read_all()
        if entries.pop(self._key(key), None) is not None:
            self._write_all(entries)

    def clear(self) -> None:
        entries = self._read_all()
        kept = {k: v for k, v in entries.items() if not k.startswith(f"{self._prefix}:")}
        if len(kept) != len(entries):
            self._write_all(kept)

    def get_all_keys(self) -> list[str]:
        marker = f"{self._prefix}:"
        return [k[len(marker):] for k in self._read_all() if k.startswith(marker)]

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            entries = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(str(self._path), f"Could not read '{self._path}'", cause=exc) from exc
        if not isinstance(entries, dict):
            raise StorageError(str(self._path), f"'{self._path}' does not hold a JSON object")
        return entries

    def _write_all(self, entries: dict[str, Any]) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}.", suffix=".tmp")
        except OSError as exc:
            raise StorageError(str(self._path), cause=exc) from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(str(self._path), f"Could not write '{self._path}'", cause=exc) from exc
