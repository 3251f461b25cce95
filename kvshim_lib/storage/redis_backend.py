"""Redis store using redis-py."""
from __future__ import annotations
import logging
from typing import Optional

import redis
from pydantic import Field

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options
from kvshim_lib.util import split_address

logger = logging.getLogger(__name__)


class RedisOptions(StoreOptions):
    # Host and port of the Redis server.
    address: str = "localhost:6379"
    password: Optional[str] = None
    db: int = Field(default=0, ge=0)
    # Seconds; applies to every operation.
    timeout: float = 2.0


class RedisStore(BackendStore):
    def __init__(self, options: Optional[RedisOptions] = None, **overrides) -> None:
        options = merge_options(RedisOptions, options, overrides)
        super().__init__(options.codec)
        host, port = split_address(options.address, 6379)
        self.client = redis.Redis(
            host=host,
            port=port,
            password=options.password,
            db=options.db,
            socket_timeout=options.timeout,
            socket_connect_timeout=options.timeout,
        )
        self.client.ping()
        logger.debug("RedisStore connected to %s db %d", options.address, options.db)

    def _write(self, key: str, data: bytes) -> None:
        self.client.set(key, data)

    def _read(self, key: str) -> Lookup[bytes]:
        data = self.client.get(key)
        return MISS if data is None else Hit(data)

    def _remove(self, key: str) -> None:
        self.client.delete(key)

    def close(self) -> None:
        self.client.close()
        logger.debug("RedisStore closed")
