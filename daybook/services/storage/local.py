"""
Local Storage Implementations

DESIGN DECISION: A single JSON document on disk is the backing store.
It mirrors browser local storage closely: one flat object mapping
string keys to string values, rewritten as a whole on every change.

Writes go to a temporary file in the same directory which then
replaces the original, so a crash mid-write leaves the old document.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from daybook.services.storage.interface import (
    CorruptStoreError,
    KeyValueStore,
    StorageError,
)


logger = structlog.get_logger(__name__)


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """
    Key-value store persisted as one JSON object in a file.

    The document is read lazily on first access and cached; every
    write rewrites the whole file.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path).expanduser()
        self._data: Optional[dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        """Read the document from disk (cached after the first call)."""
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(f"Store file {self._path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Could not read store file {self._path}: {e}") from e

        if not isinstance(payload, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in payload.items()
        ):
            raise CorruptStoreError(
                f"Store file {self._path} does not hold a string-to-string object"
            )

        self._data = payload
        return self._data

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Could not write store file {self._path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = dict(self._load())
        except CorruptStoreError as e:
            # An unreadable document is replaced, as local storage would be
            logger.warning("store_reset", path=str(self._path), error=str(e))
            data = {}
        data[key] = value
        self._write(data)
        self._data = data

    def delete(self, key: str) -> bool:
        data = dict(self._load())
        if key not in data:
            return False
        del data[key]
        self._write(data)
        self._data = data
        return True

    def keys(self) -> list[str]:
        return list(self._load())
