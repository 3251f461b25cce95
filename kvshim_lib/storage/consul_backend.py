"""Consul KV store over Consul's HTTP API, using requests."""
from __future__ import annotations
import logging
from typing import Optional
from urllib.parse import quote

import requests

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class ConsulOptions(StoreOptions):
    scheme: str = "http"
    # Host and port of the Consul agent.
    address: str = "127.0.0.1:8500"
    token: Optional[str] = None
    datacenter: Optional[str] = None
    # Seconds.
    timeout: float = 2.0


class ConsulStore(BackendStore):
    def __init__(self, options: Optional[ConsulOptions] = None, **overrides) -> None:
        options = merge_options(ConsulOptions, options, overrides)
        super().__init__(options.codec)
        self.base_url = f"{options.scheme}://{options.address}/v1/kv/"
        self.timeout = options.timeout
        self.params = {"dc": options.datacenter} if options.datacenter else {}
        self.client = requests.Session()
        if options.token:
            self.client.headers["X-Consul-Token"] = options.token
        logger.debug("ConsulStore using %s", self.base_url)

    def _url(self, key: str) -> str:
        return self.base_url + quote(key, safe="")

    def _write(self, key: str, data: bytes) -> None:
        resp = self.client.put(self._url(key), data=data, params=self.params, timeout=self.timeout)
        resp.raise_for_status()

    def _read(self, key: str) -> Lookup[bytes]:
        params = {**self.params, "raw": "true"}
        resp = self.client.get(self._url(key), params=params, timeout=self.timeout)
        if resp.status_code == 404:
            return MISS
        resp.raise_for_status()
        return Hit(resp.content)

    def _remove(self, key: str) -> None:
        resp = self.client.delete(self._url(key), params=self.params, timeout=self.timeout)
        resp.raise_for_status()

    def close(self) -> None:
        self.client.close()
        logger.debug("ConsulStore closed")
