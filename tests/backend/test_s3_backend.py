import io

import pytest
from botocore.exceptions import ClientError
from pydantic import ValidationError

from kvshim_lib.storage import aws, s3_backend
from kvshim_lib.storage.s3_backend import S3Options, S3Store
from tests.helpers import Foo, check_store_contract


def client_error(code, op):
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class FakeS3:
    def __init__(self, bucket_exists=False, create_error=None):
        self.objects = {}
        self.create_calls = []
        self.bucket_exists = bucket_exists
        self.create_error = create_error
        self.closed = False

    def create_bucket(self, **kwargs):
        self.create_calls.append(kwargs)
        if self.create_error:
            raise client_error(self.create_error, "CreateBucket")

    def put_object(self, Bucket, Key, Body):
        self.objects[(Bucket, Key)] = Body

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_s3(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(s3_backend, "make_client", lambda service, options: fake)
    return fake


def test_s3_store_contract(fake_s3):
    check_store_contract(S3Store(bucket_name="kvshim"))


def test_s3_creates_bucket_with_location(fake_s3):
    S3Store(bucket_name="b", region="eu-west-1")
    S3Store(bucket_name="b", region="us-east-1")
    assert fake_s3.create_calls[0] == {"Bucket": "b", "CreateBucketConfiguration": {"LocationConstraint": "eu-west-1"}}
    assert fake_s3.create_calls[1] == {"Bucket": "b"}


def test_s3_existing_bucket_is_fine_other_errors_raise(monkeypatch):
    monkeypatch.setattr(s3_backend, "make_client", lambda s, o: FakeS3(create_error="BucketAlreadyOwnedByYou"))
    S3Store(bucket_name="b")
    monkeypatch.setattr(s3_backend, "make_client", lambda s, o: FakeS3(create_error="AccessDenied"))
    with pytest.raises(ClientError):
        S3Store(bucket_name="b")


def test_s3_object_body(fake_s3):
    store = S3Store(bucket_name="b")
    store.set("foo123", Foo(Bar="baz"))
    assert fake_s3.objects[("b", "foo123")] == b'{"Bar": "baz"}'
    store.close()
    assert fake_s3.closed


def test_s3_requires_bucket_and_paired_credentials():
    with pytest.raises(ValidationError):
        S3Options()
    with pytest.raises(ValidationError):
        S3Options(bucket_name="b", aws_access_key_id="id")


def test_make_client_arguments(monkeypatch):
    calls = []
    monkeypatch.setattr(aws.boto3, "client", lambda service, **kw: calls.append((service, kw)) or object())
    aws.make_client("s3", S3Options(bucket_name="b"))
    aws.make_client("s3", S3Options(
        bucket_name="b",
        region="eu-central-1",
        aws_access_key_id="id",
        aws_secret_access_key="secret",
        custom_endpoint="http://localhost:9000",
    ))
    assert calls[0] == ("s3", {})
    assert calls[1] == ("s3", {
        "region_name": "eu-central-1",
        "aws_access_key_id": "id",
        "aws_secret_access_key": "secret",
        "endpoint_url": "http://localhost:9000",
    })


def test_error_code():
    assert aws.error_code(client_error("NoSuchKey", "GetObject")) == "NoSuchKey"
    assert aws.error_code(ValueError("x")) == ""
