"""LevelDB store using plyvel."""
from __future__ import annotations
import logging
from typing import Optional

import plyvel

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class LevelDBOptions(StoreOptions):
    # Directory of the database; created if missing.
    path: str = "leveldb"
    # fsync every write and delete.
    write_sync: bool = False


class LevelDBStore(BackendStore):
    def __init__(self, options: Optional[LevelDBOptions] = None, **overrides) -> None:
        options = merge_options(LevelDBOptions, options, overrides)
        super().__init__(options.codec)
        self.write_sync = options.write_sync
        self.client = plyvel.DB(options.path, create_if_missing=True)
        logger.debug("LevelDBStore opened %s", options.path)

    def _write(self, key: str, data: bytes) -> None:
        self.client.put(key.encode("utf-8"), data, sync=self.write_sync)

    def _read(self, key: str) -> Lookup[bytes]:
        data = self.client.get(key.encode("utf-8"))
        return MISS if data is None else Hit(data)

    def _remove(self, key: str) -> None:
        self.client.delete(key.encode("utf-8"), sync=self.write_sync)

    def close(self) -> None:
        self.client.close()
        logger.debug("LevelDBStore closed")
