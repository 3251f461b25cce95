"""Google Cloud Datastore store using google-cloud-datastore.

Each key is one entity of the configured kind, named after the key, with the
encoded value in the unindexed binary property ``v``.
"""
from __future__ import annotations
import logging
from typing import Optional

from google.cloud import datastore

from kvshim_lib.errors import CodecError
from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.gcp import GCPOptions, make_client
from kvshim_lib.storage.options import merge_options

logger = logging.getLogger(__name__)

VALUE_ATTR = "v"


class DatastoreOptions(GCPOptions):
    kind: str = "kvshim"


class DatastoreStore(BackendStore):
    def __init__(self, options: Optional[DatastoreOptions] = None, **overrides) -> None:
        options = merge_options(DatastoreOptions, options, overrides)
        super().__init__(options.codec)
        self.kind = options.kind
        self.timeout = options.timeout
        self.client = make_client(datastore.Client, options)
        logger.debug("DatastoreStore using project %s, kind %s", options.project_id, self.kind)

    def _write(self, key: str, data: bytes) -> None:
        entity = datastore.Entity(key=self.client.key(self.kind, key), exclude_from_indexes=(VALUE_ATTR,))
        entity[VALUE_ATTR] = data
        self.client.put(entity, timeout=self.timeout)

    def _read(self, key: str) -> Lookup[bytes]:
        entity = self.client.get(self.client.key(self.kind, key), timeout=self.timeout)
        if entity is None:
            return MISS
        value = entity.get(VALUE_ATTR)
        if not isinstance(value, (bytes, bytearray)):
            raise CodecError(f"datastore: property {VALUE_ATTR!r} of {key!r} is not binary", found=True)
        return Hit(bytes(value))

    def _remove(self, key: str) -> None:
        # Deleting a missing entity is not an error.
        self.client.delete(self.client.key(self.kind, key), timeout=self.timeout)

    def close(self) -> None:
        self.client.close()
