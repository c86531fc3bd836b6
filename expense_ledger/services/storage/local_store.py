"""
Local Key-Value Store Implementations

JsonFileKeyValueStore keeps one `<key>.json` file per key in a data
directory. This mirrors the on-device store the mobile app used: every
logical document (expenses, budget, settings, ...) is read and written whole.

TRADEOFFS:
- Every write rewrites the whole document (fine for a personal ledger)
- No transactions across keys; callers write one key per command
- Writes are atomic per key (temp file + rename), so a crash leaves either
  the old or the new document, never half of one

InMemoryKeyValueStore is the same contract backed by a dict.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_ledger.config import get_settings
from expense_ledger.services.storage.interface import (
    InvalidKeyError,
    KeyValueStoreInterface,
    StorageReadError,
    StorageWriteError,
)


FILE_SUFFIX = ".json"


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store backed by one file per key.

    File I/O runs in a worker thread so the event loop is never blocked.
    Writes and removals are retried on OSError before being reported.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        write_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._data_dir = Path(data_dir) if data_dir is not None else settings.data_dir
        self._write_attempts = write_attempts or settings.write_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise InvalidKeyError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{FILE_SUFFIX}"

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    # -------------------------------------------------------------------------
    # Blocking helpers (run via asyncio.to_thread)
    # -------------------------------------------------------------------------

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _list_keys(self) -> list[str]:
        if not self._data_dir.exists():
            return []
        return sorted(
            path.name[: -len(FILE_SUFFIX)]
            for path in self._data_dir.iterdir()
            if path.is_file() and path.name.endswith(FILE_SUFFIX) and not path.name.startswith(".")
        )

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    async def get_item(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Failed to read {key!r}: {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._retrying(), self._write, key, value)
        except OSError as e:
            raise StorageWriteError(f"Failed to write {key!r}: {e}") from e

    async def remove_item(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._retrying(), self._remove, key)
        except OSError as e:
            raise StorageWriteError(f"Failed to remove {key!r}: {e}") from e

    async def keys(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._list_keys)
        except OSError as e:
            raise StorageReadError(f"Failed to list keys: {e}") from e


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def keys(self) -> list[str]:
        return sorted(self._items)

    def dump(self) -> dict[str, str]:
        """Copy of the raw stored values."""
        return dict(self._items)
