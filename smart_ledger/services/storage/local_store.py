"""
Local Key-Value Storage

DESIGN DECISION: Each key is one JSON file in a data directory.
This mirrors browser local storage:
1. One named record holds the whole ledger
2. Every write replaces the record wholesale
3. No database or server to set up

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write leaves the previous record intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from smart_ledger.config import get_settings
from smart_ledger.services.storage.interface import (
    KeyValueStoreInterface,
    PersistenceReadError,
    PersistenceWriteError,
)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    File-backed key-value store.

    Transient OS errors on write (locked file, full buffer) are retried
    a few times with exponential backoff before giving up.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        write_attempts: Optional[int] = None,
    ):
        if data_dir is None or write_attempts is None:
            settings = get_settings().storage
            data_dir = data_dir if data_dir is not None else settings.data_dir
            write_attempts = write_attempts or settings.write_attempts
        self._data_dir = Path(data_dir)
        self._write_attempts = write_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            for attempt in self._retrying():
                with attempt:
                    self._write_atomic(self._path(key), value)
        except OSError as e:
            raise PersistenceWriteError(f"Could not write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            for attempt in self._retrying():
                with attempt:
                    self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceWriteError(f"Could not delete {key}: {e}") from e

    def _write_atomic(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
