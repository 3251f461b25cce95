"""Azure Table Storage store using azure-data-tables.

Entities use the key as RowKey and store the encoded value in the binary
property ``v``. The PartitionKey comes from `partition_key_supplier`, which
by default puts everything in one partition. Table Storage does not allow
``/``, ``\\``, ``#`` or ``?`` in keys.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.data.tables import TableServiceClient, UpdateMode

from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import StoreOptions, merge_options

logger = logging.getLogger(__name__)

VALUE_ATTR = "v"


def empty_partition_key(key: str) -> str:
    return ""


class TableStorageOptions(StoreOptions):
    # Required.
    connection_string: str
    table_name: str = "kvshim"
    partition_key_supplier: Callable[[str], str] = empty_partition_key


class TableStorageStore(BackendStore):
    def __init__(self, options: Optional[TableStorageOptions] = None, **overrides) -> None:
        options = merge_options(TableStorageOptions, options, overrides)
        super().__init__(options.codec)
        self.partition_key = options.partition_key_supplier
        self.service = TableServiceClient.from_connection_string(options.connection_string)
        self.client = self.service.create_table_if_not_exists(options.table_name)
        logger.debug("TableStorageStore using table %s", options.table_name)

    def _write(self, key: str, data: bytes) -> None:
        entity = {"PartitionKey": self.partition_key(key), "RowKey": key, VALUE_ATTR: data}
        self.client.upsert_entity(entity, mode=UpdateMode.REPLACE)

    def _read(self, key: str) -> Lookup[bytes]:
        try:
            entity = self.client.get_entity(partition_key=self.partition_key(key), row_key=key)
        except ResourceNotFoundError:
            return MISS
        value = entity.get(VALUE_ATTR)
        if value is None:
            return MISS
        return Hit(bytes(value))

    def _remove(self, key: str) -> None:
        try:
            self.client.delete_entity(partition_key=self.partition_key(key), row_key=key)
        except ResourceNotFoundError:
            pass

    def close(self) -> None:
        self.client.close()
        self.service.close()
