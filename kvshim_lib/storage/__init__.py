"""Storage abstraction package for kvshim.

Exposes the store contract, the lookup results and a `create_store` factory.
Backend modules are imported lazily by the factory so that a backend's
client library is only needed when that backend is actually used.
"""
from __future__ import annotations
import importlib
import logging
from typing import Any, Dict, List, Tuple

from .base import MISS, BackendStore, Hit, Miss, Store, check_key, check_key_and_value
from .encoding import Codec, get_codec

logger = logging.getLogger(__name__)

# name -> (module, class)
_STORES: Dict[str, Tuple[str, str]] = {
    "memory": ("memory_backend", "MemoryStore"),
    "nop": ("nop_backend", "NopStore"),
    "file": ("file_backend", "FileStore"),
    "sqlite": ("sqlite_backend", "SQLiteStore"),
    "postgresql": ("postgresql_backend", "PostgreSQLStore"),
    "cockroachdb": ("cockroachdb_backend", "CockroachDBStore"),
    "mysql": ("mysql_backend", "MySQLStore"),
    "redis": ("redis_backend", "RedisStore"),
    "memcached": ("memcached_backend", "MemcachedStore"),
    "hazelcast": ("hazelcast_backend", "HazelcastStore"),
    "mongodb": ("mongodb_backend", "MongoDBStore"),
    "arangodb": ("arangodb_backend", "ArangoDBStore"),
    "s3": ("s3_backend", "S3Store"),
    "dynamodb": ("dynamodb_backend", "DynamoDBStore"),
    "datastore": ("datastore_backend", "DatastoreStore"),
    "firestore": ("firestore_backend", "FirestoreStore"),
    "consul": ("consul_backend", "ConsulStore"),
    "etcd": ("etcd_backend", "EtcdStore"),
    "zookeeper": ("zookeeper_backend", "ZooKeeperStore"),
    "tablestorage": ("tablestorage_backend", "TableStorageStore"),
    "leveldb": ("leveldb_backend", "LevelDBStore"),
}


def available_stores() -> List[str]:
    return sorted(_STORES)


def store_class(implementation: str) -> type:
    try:
        module_name, class_name = _STORES[implementation.strip().lower()]
    except KeyError:
        raise ValueError(
            f"unknown store implementation {implementation!r}; expected one of {', '.join(available_stores())}"
        ) from None
    module = importlib.import_module(f"{__name__}.{module_name}")
    return getattr(module, class_name)


def create_store(implementation: str, codec: Codec | str | None = None, **options: Any) -> Store:
    """Create a store by name.

    `options` are the fields of the store's options model, e.g.
    ``create_store("redis", codec="msgpack", address="cache:6379")``.
    """
    cls = store_class(implementation)
    if codec is not None:
        options["codec"] = codec
    logger.debug("Creating %s store", implementation)
    return cls(**options)


__all__ = [
    "Store",
    "BackendStore",
    "Hit",
    "Miss",
    "MISS",
    "check_key",
    "check_key_and_value",
    "Codec",
    "get_codec",
    "available_stores",
    "store_class",
    "create_store",
]
