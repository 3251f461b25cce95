"""Apache ZooKeeper store using kazoo.

Each key is a znode directly below the configured path prefix; the znode
data is the encoded value. The prefix path is created on construction.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from kazoo.client import KazooClient
from kazoo.exceptions import NodeExistsError, NoNodeError
from pydantic import Field, field_validator

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class ZooKeeperOptions(StoreOptions):
    servers: List[str] = Field(default_factory=lambda: ["localhost:2181"], min_length=1)
    # Must start and end with "/". Keys are appended to it.
    path_prefix: str = "/kvshim/"
    # Seconds.
    timeout: float = 2.0

    @field_validator("path_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("the path_prefix must start with a '/'")
        if "//" in value:
            raise ValueError("invalid path_prefix containing '//'")
        if not value.endswith("/"):
            value += "/"
        return value


class ZooKeeperStore(BackendStore):
    def __init__(self, options: Optional[ZooKeeperOptions] = None, **overrides) -> None:
        options = merge_options(ZooKeeperOptions, options, overrides)
        super().__init__(options.codec)
        self.path_prefix = options.path_prefix
        self.client = KazooClient(hosts=",".join(options.servers), timeout=options.timeout)
        self.client.start(timeout=options.timeout)
        if self.path_prefix != "/":
            self.client.ensure_path(self.path_prefix.rstrip("/"))
        logger.debug("ZooKeeperStore connected, prefix %s", self.path_prefix)

    def _path(self, key: str) -> str:
        return self.path_prefix + key

    def _write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            self.client.create(path, data)
        except NodeExistsError:
            self.client.set(path, data)

    def _read(self, key: str) -> Lookup[bytes]:
        try:
            data, _stat = self.client.get(self._path(key))
        except NoNodeError:
            return MISS
        return Hit(data)

    def _remove(self, key: str) -> None:
        try:
            self.client.delete(self._path(key))
        except NoNodeError:
            pass

    def close(self) -> None:
        self.client.stop()
        self.client.close()
        logger.debug("ZooKeeperStore closed")
