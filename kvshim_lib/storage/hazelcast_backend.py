"""Hazelcast store using hazelcast-python-client.

Values live in a distributed map as byte arrays.
"""
from __future__ import annotations
import logging
from typing import Optional

import hazelcast

from kvshim_lib.errors import CodecError
from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class HazelcastOptions(StoreOptions):
    address: str = "localhost:5701"
    map_name: str = "kvshim"
    # Seconds to keep trying to reach the cluster on connect.
    timeout: float = 5.0


class HazelcastStore(BackendStore):
    def __init__(self, options: Optional[HazelcastOptions] = None, **overrides) -> None:
        options = merge_options(HazelcastOptions, options, overrides)
        super().__init__(options.codec)
        self.client = hazelcast.HazelcastClient(
            cluster_members=[options.address],
            cluster_connect_timeout=options.timeout,
        )
        self.map = self.client.get_map(options.map_name).blocking()
        logger.debug("HazelcastStore using map %s at %s", options.map_name, options.address)

    def _write(self, key: str, data: bytes) -> None:
        self.map.set(key, bytearray(data))

    def _read(self, key: str) -> Lookup[bytes]:
        value = self.map.get(key)
        if value is None:
            return MISS
        if not isinstance(value, (bytes, bytearray)):
            raise CodecError(f"hazelcast: value of {key!r} is not a byte array", found=True)
        return Hit(bytes(value))

    def _remove(self, key: str) -> None:
        self.map.delete(key)

    def close(self) -> None:
        self.client.shutdown()
