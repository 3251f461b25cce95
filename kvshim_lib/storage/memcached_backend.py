"""Memcached store using pymemcache.

Memcached may evict entries at any time, so a miss can also mean the value
was evicted. Values larger than the server's item size limit (1 MB by
default) are rejected by the server.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from pydantic import Field
from pymemcache.client.hash import HashClient

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options
from kvshim_lib.util import split_address

logger = logging.getLogger(__name__)


class MemcachedOptions(StoreOptions):
    addresses: List[str] = Field(default_factory=lambda: ["localhost:11211"], min_length=1)
    # Seconds.
    timeout: float = 0.2
    max_idle_conns: int = Field(default=100, ge=1)


class MemcachedStore(BackendStore):
    def __init__(self, options: Optional[MemcachedOptions] = None, **overrides) -> None:
        options = merge_options(MemcachedOptions, options, overrides)
        super().__init__(options.codec)
        servers = [split_address(a, 11211) for a in options.addresses]
        self.client = HashClient(
            servers,
            connect_timeout=options.timeout,
            timeout=options.timeout,
            use_pooling=True,
            max_pool_size=options.max_idle_conns,
            ignore_exc=False,
        )
        logger.debug("MemcachedStore configured for %s", ", ".join(options.addresses))

    def _write(self, key: str, data: bytes) -> None:
        self.client.set(key, data, noreply=False)

    def _read(self, key: str) -> Lookup[bytes]:
        data = self.client.get(key)
        return MISS if data is None else Hit(data)

    def _remove(self, key: str) -> None:
        # Returns False for a missing key, which is fine.
        self.client.delete(key, noreply=False)

    def close(self) -> None:
        self.client.close()
        logger.debug("MemcachedStore closed")
