"""ArangoDB store using python-arango.

Document keys in ArangoDB are restricted to a small character set, so each
document's ``_key`` is the SHA-256 hex digest of the store key. The store
key itself is kept in ``k`` and the encoded value, base64 encoded, in ``v``.
The database and collection are created when they do not exist.
"""
from __future__ import annotations
import base64
import binascii
import hashlib
import logging
from typing import List, Optional

from arango import ArangoClient
from pydantic import Field, field_validator

from kvshim_lib.errors import CodecError
from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)


class ArangoDBOptions(StoreOptions):
    endpoints: List[str] = Field(default_factory=lambda: ["http://localhost:8529"], min_length=1)
    username: str = "root"
    password: str = ""
    database_name: str = "kvshim"
    collection_name: str = "item"
    # Seconds per request.
    timeout: float = 2.0

    @field_validator("endpoints")
    @classmethod
    def _check_endpoints(cls, value: List[str]) -> List[str]:
        for endpoint in value:
            if not endpoint.startswith(("http://", "https://")):
                raise ValueError(f"endpoint {endpoint!r} must start with http:// or https://")
        return value


def document_key(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class ArangoDBStore(BackendStore):
    def __init__(self, options: Optional[ArangoDBOptions] = None, **overrides) -> None:
        options = merge_options(ArangoDBOptions, options, overrides)
        super().__init__(options.codec)
        self.client = ArangoClient(hosts=list(options.endpoints), request_timeout=options.timeout)
        try:
            sys_db = self.client.db("_system", username=options.username, password=options.password)
            if not sys_db.has_database(options.database_name):
                sys_db.create_database(options.database_name)
            db = self.client.db(options.database_name, username=options.username, password=options.password)
            if db.has_collection(options.collection_name):
                self.collection = db.collection(options.collection_name)
            else:
                self.collection = db.create_collection(options.collection_name)
        except Exception:
            self.client.close()
            raise
        logger.debug("ArangoDBStore using %s/%s", options.database_name, options.collection_name)

    def _write(self, key: str, data: bytes) -> None:
        doc = {"_key": document_key(key), "k": key, "v": base64.b64encode(data).decode("ascii")}
        self.collection.insert(doc, overwrite=True, silent=True)

    def _read(self, key: str) -> Lookup[bytes]:
        doc = self.collection.get(document_key(key))
        if doc is None:
            return MISS
        try:
            return Hit(base64.b64decode(doc["v"], validate=True))
        except (KeyError, TypeError, binascii.Error) as e:
            raise CodecError(f"arangodb: value of {key!r} is not valid base64: {e}", found=True) from e

    def _remove(self, key: str) -> None:
        self.collection.delete(document_key(key), ignore_missing=True, silent=True)

    def close(self) -> None:
        self.client.close()
