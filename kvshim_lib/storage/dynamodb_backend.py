"""Amazon DynamoDB store using boto3.

Items have a string hash key attribute ``k`` and a binary attribute ``v``.
The table is created with provisioned throughput when it does not exist.
"""
from __future__ import annotations
import logging
from typing import Optional

from botocore.exceptions import ClientError
from pydantic import Field

from kvshim_lib.errors import CodecError
from kvshim_lib.storage.aws import AWSOptions, error_code, make_client
from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import merge_options

logger = logging.getLogger(__name__)

KEY_ATTR = "k"
VALUE_ATTR = "v"


class DynamoDBOptions(AWSOptions):
    table_name: str = "kvshim"
    read_capacity_units: int = Field(default=5, ge=1)
    write_capacity_units: int = Field(default=5, ge=1)
    # Block in the constructor until a newly created table is ACTIVE.
    wait_for_table_creation: bool = True


class DynamoDBStore(BackendStore):
    def __init__(self, options: Optional[DynamoDBOptions] = None, **overrides) -> None:
        options = merge_options(DynamoDBOptions, options, overrides)
        super().__init__(options.codec)
        self.table_name = options.table_name
        self.client = make_client("dynamodb", options)
        self._ensure_table(options)

    def _ensure_table(self, options: DynamoDBOptions) -> None:
        try:
            self.client.describe_table(TableName=self.table_name)
            return
        except ClientError as e:
            if error_code(e) != "ResourceNotFoundException":
                raise
        self.client.create_table(
            TableName=self.table_name,
            AttributeDefinitions=[{"AttributeName": KEY_ATTR, "AttributeType": "S"}],
            KeySchema=[{"AttributeName": KEY_ATTR, "KeyType": "HASH"}],
            ProvisionedThroughput={
                "ReadCapacityUnits": options.read_capacity_units,
                "WriteCapacityUnits": options.write_capacity_units,
            },
        )
        logger.debug("Created DynamoDB table %s", self.table_name)
        if options.wait_for_table_creation:
            self.client.get_waiter("table_exists").wait(TableName=self.table_name)

    def _write(self, key: str, data: bytes) -> None:
        self.client.put_item(
            TableName=self.table_name,
            Item={KEY_ATTR: {"S": key}, VALUE_ATTR: {"B": data}},
        )

    def _read(self, key: str) -> Lookup[bytes]:
        resp = self.client.get_item(TableName=self.table_name, Key={KEY_ATTR: {"S": key}})
        item = resp.get("Item")
        if not item or VALUE_ATTR not in item:
            return MISS
        attr = item[VALUE_ATTR]
        if "B" not in attr:
            raise CodecError(f"dynamodb: attribute {VALUE_ATTR!r} of {key!r} is not binary", found=True)
        return Hit(bytes(attr["B"]))

    def _remove(self, key: str) -> None:
        self.client.delete_item(TableName=self.table_name, Key={KEY_ATTR: {"S": key}})

    def close(self) -> None:
        self.client.close()
