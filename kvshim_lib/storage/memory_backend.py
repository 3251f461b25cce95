"""Memory-backed store.

Encoded values live in a plain dict guarded by a reader/writer lock. Reads
hold the shared lock only for the dict lookup; decoding happens after the
lock is released so slow unmarshalling never blocks writers.
"""
from __future__ import annotations
import logging
from typing import Dict, Optional

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.locks import ReadWriteLock
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class MemoryOptions(StoreOptions):
    pass


class MemoryStore(BackendStore):
    def __init__(self, options: Optional[MemoryOptions] = None, **overrides) -> None:
        options = merge_options(MemoryOptions, options, overrides)
        super().__init__(options.codec)
        self._lock = ReadWriteLock()
        self._store: Dict[str, bytes] = {}

    def _write(self, key: str, data: bytes) -> None:
        with self._lock.write():
            self._store[key] = data

    def _read(self, key: str) -> Lookup[bytes]:
        with self._lock.read():
            data = self._store.get(key)
        return MISS if data is None else Hit(data)

    def _remove(self, key: str) -> None:
        with self._lock.write():
            self._store.pop(key, None)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._store)

    def close(self) -> None:
        # Drop the dict so its contents can be garbage collected.
        with self._lock.write():
            self._store = {}
        logger.debug("MemoryStore closed")
