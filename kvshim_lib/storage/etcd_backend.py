"""etcd store over the etcd v3 JSON gateway, using httpx.

The gateway expects keys and values base64 encoded inside JSON bodies. The
constructor queries the cluster status once so an unreachable endpoint
fails early.
"""
from __future__ import annotations
import base64
import logging
from typing import List, Optional

import httpx
from pydantic import Field

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class EtcdOptions(StoreOptions):
    # Only the first endpoint is used.
    endpoints: List[str] = Field(default_factory=lambda: ["http://localhost:2379"], min_length=1)
    # Seconds; applies to every operation.
    timeout: float = 0.2
    # Seconds; applies to the status check in the constructor.
    dial_timeout: float = 2.0


class EtcdStore(BackendStore):
    def __init__(self, options: Optional[EtcdOptions] = None, **overrides) -> None:
        options = merge_options(EtcdOptions, options, overrides)
        super().__init__(options.codec)
        endpoint = options.endpoints[0]
        if "://" not in endpoint:
            endpoint = "http://" + endpoint
        self.client = httpx.Client(base_url=endpoint, timeout=options.timeout)
        try:
            resp = self.client.post("/v3/maintenance/status", json={}, timeout=options.dial_timeout)
            resp.raise_for_status()
        except Exception:
            self.client.close()
            raise
        logger.debug("EtcdStore connected to %s (version %s)", endpoint, resp.json().get("version"))

    def _write(self, key: str, data: bytes) -> None:
        resp = self.client.post("/v3/kv/put", json={"key": _b64(key.encode("utf-8")), "value": _b64(data)})
        resp.raise_for_status()

    def _read(self, key: str) -> Lookup[bytes]:
        resp = self.client.post("/v3/kv/range", json={"key": _b64(key.encode("utf-8"))})
        resp.raise_for_status()
        kvs = resp.json().get("kvs") or []
        if not kvs:
            return MISS
        # The gateway omits empty fields, so an empty value has no "value" key.
        return Hit(base64.b64decode(kvs[0].get("value", "")))

    def _remove(self, key: str) -> None:
        resp = self.client.post("/v3/kv/deleterange", json={"key": _b64(key.encode("utf-8"))})
        resp.raise_for_status()

    def close(self) -> None:
        self.client.close()
        logger.debug("EtcdStore closed")
