"""boto3 client construction shared by the S3 and DynamoDB stores."""
from __future__ import annotations
from typing import Optional

import boto3
from pydantic import model_validator

from kvshim_lib.storage.options import StoreOptions


class AWSOptions(StoreOptions):
    # Falls back to the region of the shared AWS config / environment.
    region: Optional[str] = None
    # Both or neither; without them the default credential chain is used.
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    # For S3/DynamoDB compatible services or local emulators.
    custom_endpoint: Optional[str] = None

    @model_validator(mode="after")
    def _check_credentials(self):
        if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
            raise ValueError(
                "when passing credentials via options, set BOTH aws_access_key_id AND aws_secret_access_key"
            )
        return self


def make_client(service: str, options: AWSOptions):
    kwargs = {}
    if options.region:
        kwargs["region_name"] = options.region
    if options.aws_access_key_id:
        kwargs["aws_access_key_id"] = options.aws_access_key_id
        kwargs["aws_secret_access_key"] = options.aws_secret_access_key
    if options.custom_endpoint:
        kwargs["endpoint_url"] = options.custom_endpoint
    return boto3.client(service, **kwargs)


def error_code(exc: Exception) -> str:
    """Return the AWS error code of a botocore `ClientError`, or ''."""
    response = getattr(exc, "response", None) or {}
    return str(response.get("Error", {}).get("Code", ""))
