"""File-backed store: one file per key.

Values are stored as ``<directory>/<escaped key><codec extension>``. Keys
are percent-escaped so any string maps to a single file name. Writes go to
a temporary file that is then renamed over the target, so readers never
see a partially written value.
"""
from __future__ import annotations
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.locks import ReadWriteLock
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class FileOptions(StoreOptions):
    # Can be absolute or relative; created if missing.
    directory: str = "kvshim"


class FileStore(BackendStore):
    def __init__(self, options: Optional[FileOptions] = None, **overrides) -> None:
        options = merge_options(FileOptions, options, overrides)
        super().__init__(options.codec)
        self.directory = Path(options.directory)
        self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        self.file_extension = self.codec.extension
        # Guards creation of entries in _file_locks.
        self._locks_lock = threading.Lock()
        self._file_locks: Dict[str, ReadWriteLock] = {}
        logger.debug("FileStore opened at %s", self.directory)

    def _file_lock(self, name: str) -> ReadWriteLock:
        with self._locks_lock:
            lock = self._file_locks.get(name)
            if lock is None:
                lock = self._file_locks[name] = ReadWriteLock()
            return lock

    def _path_for(self, key: str) -> Path:
        return self.directory / (quote(key, safe="") + self.file_extension)

    def _write(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        with self._file_lock(path.name).write():
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp, 0o600)
            tmp.replace(path)

    def _read(self, key: str) -> Lookup[bytes]:
        path = self._path_for(key)
        try:
            with self._file_lock(path.name).read():
                data = path.read_bytes()
        except FileNotFoundError:
            return MISS
        return Hit(data)

    def _remove(self, key: str) -> None:
        path = self._path_for(key)
        with self._file_lock(path.name).write():
            path.unlink(missing_ok=True)

    def close(self) -> None:
        with self._locks_lock:
            self._file_locks = {}
        logger.debug("FileStore at %s closed", self.directory)
