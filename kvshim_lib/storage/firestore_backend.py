"""Google Cloud Firestore store using google-cloud-firestore.

Each key is one document in the configured collection, holding the encoded
value in the field ``value``. Document IDs cannot contain ``/``.
"""
from __future__ import annotations
import logging
from typing import Optional

from google.cloud import firestore

from kvshim_lib.errors import CodecError
from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.gcp import GCPOptions, make_client
from kvshim_lib.storage.options import merge_options

logger = logging.getLogger(__name__)

VALUE_FIELD = "value"


class FirestoreOptions(GCPOptions):
    collection_name: str = "kvshim"


class FirestoreStore(BackendStore):
    def __init__(self, options: Optional[FirestoreOptions] = None, **overrides) -> None:
        options = merge_options(FirestoreOptions, options, overrides)
        super().__init__(options.codec)
        self.timeout = options.timeout
        self.client = make_client(firestore.Client, options)
        self.collection = self.client.collection(options.collection_name)
        logger.debug("FirestoreStore using project %s, collection %s", options.project_id, options.collection_name)

    def _write(self, key: str, data: bytes) -> None:
        self.collection.document(key).set({VALUE_FIELD: data}, timeout=self.timeout)

    def _read(self, key: str) -> Lookup[bytes]:
        snapshot = self.collection.document(key).get(timeout=self.timeout)
        if not snapshot.exists:
            return MISS
        value = (snapshot.to_dict() or {}).get(VALUE_FIELD)
        if not isinstance(value, (bytes, bytearray)):
            raise CodecError(f"firestore: field {VALUE_FIELD!r} of {key!r} is not binary", found=True)
        return Hit(bytes(value))

    def _remove(self, key: str) -> None:
        self.collection.document(key).delete(timeout=self.timeout)

    def close(self) -> None:
        self.client.close()
