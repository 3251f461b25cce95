"""Amazon S3 store using boto3. Works with S3 compatible services too.

The bucket is created when it does not exist yet.
"""
from __future__ import annotations
import logging
from typing import Optional

from botocore.exceptions import ClientError

from kvshim_lib.storage.aws import AWSOptions, error_code, make_client
from kvshim_lib.storage.base import MISS, BackendStore, Hit, Lookup
from kvshim_lib.storage.options import merge_options

logger = logging.getLogger(__name__)

_NOT_FOUND = {"NoSuchKey", "404", "NotFound"}
_BUCKET_EXISTS = {"BucketAlreadyOwnedByYou"}


class S3Options(AWSOptions):
    # Required.
    bucket_name: str


class S3Store(BackendStore):
    def __init__(self, options: Optional[S3Options] = None, **overrides) -> None:
        options = merge_options(S3Options, options, overrides)
        super().__init__(options.codec)
        self.bucket_name = options.bucket_name
        self.client = make_client("s3", options)
        self._ensure_bucket(options)

    def _ensure_bucket(self, options: S3Options) -> None:
        kwargs = {"Bucket": self.bucket_name}
        if options.region and options.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": options.region}
        try:
            self.client.create_bucket(**kwargs)
            logger.debug("Created S3 bucket %s", self.bucket_name)
        except ClientError as e:
            if error_code(e) not in _BUCKET_EXISTS:
                raise

    def _write(self, key: str, data: bytes) -> None:
        self.client.put_object(Bucket=self.bucket_name, Key=key, Body=data)

    def _read(self, key: str) -> Lookup[bytes]:
        try:
            resp = self.client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if error_code(e) in _NOT_FOUND:
                return MISS
            raise
        body = resp.get("Body")
        if body is None:
            return MISS
        return Hit(body.read())

    def _remove(self, key: str) -> None:
        # S3 does not report an error for missing keys.
        self.client.delete_object(Bucket=self.bucket_name, Key=key)

    def close(self) -> None:
        self.client.close()
