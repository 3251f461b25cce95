"""MongoDB store using pymongo.

Each key is one document ``{"_id": key, "v": <bytes>}`` in the configured
collection.
"""
from __future__ import annotations
import logging
from typing import Optional

from bson.binary import Binary
from pymongo import MongoClient

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class MongoDBOptions(StoreOptions):
    connection_string: str = "mongodb://localhost"
    database_name: str = "kvshim"
    collection_name: str = "item"
    # Seconds to wait for the server on connect.
    timeout: float = 2.0


class MongoDBStore(BackendStore):
    def __init__(self, options: Optional[MongoDBOptions] = None, **overrides) -> None:
        options = merge_options(MongoDBOptions, options, overrides)
        super().__init__(options.codec)
        timeout_ms = int(options.timeout * 1000)
        self.client = MongoClient(
            options.connection_string,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
        )
        try:
            self.client.admin.command("ping")
        except Exception:
            self.client.close()
            raise
        self.collection = self.client[options.database_name][options.collection_name]
        logger.debug("MongoDBStore connected (%s.%s)", options.database_name, options.collection_name)

    def _write(self, key: str, data: bytes) -> None:
        self.collection.replace_one({"_id": key}, {"_id": key, "v": Binary(data)}, upsert=True)

    def _read(self, key: str) -> Lookup[bytes]:
        doc = self.collection.find_one({"_id": key})
        if doc is None:
            return MISS
        return Hit(bytes(doc["v"]))

    def _remove(self, key: str) -> None:
        self.collection.delete_one({"_id": key})

    def close(self) -> None:
        self.client.close()
        logger.debug("MongoDBStore closed")
