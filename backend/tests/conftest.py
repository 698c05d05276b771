"""
Test configuration and fixtures.
Uses an in-memory fake of the boto3 S3 client; presigning is delegated to
a real boto3 client, which signs offline.
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("S3_ENDPOINT", None)

import pytest
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from s3gateway.storage.gateway import StorageGateway
from s3gateway.storage.s3_client import S3StorageClient


TEST_BUCKET = "test-bucket"
TEST_ENDPOINT = "http://storage.test:9000"


class FakeBody:
    """Stand-in for botocore's StreamingBody."""

    def __init__(self, data: bytes, fail_after: Optional[int] = None):
        self._data = data
        self._fail_after = fail_after
        self.closed = False

    def iter_chunks(self, chunk_size: int = 1024):
        for offset in range(0, len(self._data), chunk_size):
            if self._fail_after is not None and offset >= self._fail_after:
                from botocore.exceptions import IncompleteReadError
                raise IncompleteReadError(actual_bytes=offset, expected_bytes=len(self._data))
            yield self._data[offset:offset + chunk_size]

    def read(self) -> bytes:
        return self._data

    def close(self):
        self.closed = True


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


class FakeS3:
    """
    In-memory implementation of the boto3 S3 calls the gateway makes.

    Keys are listed in lexicographic order like S3. Set fail_on to an
    operation name to make that call raise a ClientError, and fail_reads
    to {key: byte_offset} to break a body mid-stream.
    """

    def __init__(self):
        self.objects: dict[str, dict] = {}
        self.bodies: list[FakeBody] = []
        self.list_calls: list[dict] = []
        self.fail_on: set[str] = set()
        self.fail_list_on_page: Optional[int] = None
        self.drop_continuation_token = False
        self.fail_reads: dict[str, int] = {}
        self.bucket_exists = True
        self._signer = boto3.client(
            's3',
            endpoint_url=TEST_ENDPOINT,
            aws_access_key_id="test-access-key",
            aws_secret_access_key="test-secret-key",
            region_name="us-east-1",
            config=Config(signature_version='s3v4', s3={'addressing_style': 'path'})
        )

    def _check(self, operation: str):
        if operation in self.fail_on:
            raise client_error("InternalError", operation)

    def add(self, key: str, data: bytes, content_type: Optional[str] = None):
        self.objects[key] = {
            "data": data,
            "content_type": content_type,
            "etag": f'"{abs(hash(data)):x}"',
            "last_modified": datetime(2025, 9, 5, 1, 2, 3, tzinfo=timezone.utc),
        }

    def put_object(self, Bucket, Key, Body, ContentType=None, ContentLength=None):
        self._check("PutObject")
        self.add(Key, Body.read(), ContentType)
        return {"ETag": self.objects[Key]["etag"]}

    def get_object(self, Bucket, Key):
        self._check("GetObject")
        if Key not in self.objects:
            raise client_error("NoSuchKey", "GetObject")
        obj = self.objects[Key]
        body = FakeBody(obj["data"], self.fail_reads.get(Key))
        self.bodies.append(body)
        response = {
            "Body": body,
            "ContentLength": len(obj["data"]),
            "ETag": obj["etag"],
        }
        if obj["content_type"]:
            response["ContentType"] = obj["content_type"]
        return response

    def head_object(self, Bucket, Key):
        self._check("HeadObject")
        if Key not in self.objects:
            raise client_error("404", "HeadObject")
        obj = self.objects[Key]
        return {
            "ContentLength": len(obj["data"]),
            "ContentType": obj["content_type"] or "binary/octet-stream",
            "ETag": obj["etag"],
            "LastModified": obj["last_modified"],
        }

    def delete_object(self, Bucket, Key):
        self._check("DeleteObject")
        self.objects.pop(Key, None)
        return {}

    def list_objects_v2(self, Bucket, MaxKeys, Prefix="", ContinuationToken=None):
        self.list_calls.append({"Prefix": Prefix, "MaxKeys": MaxKeys, "ContinuationToken": ContinuationToken})
        self._check("ListObjectsV2")
        if self.fail_list_on_page is not None and len(self.list_calls) >= self.fail_list_on_page:
            raise client_error("InternalError", "ListObjectsV2")

        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken) if ContinuationToken else 0
        page = keys[start:start + MaxKeys]
        truncated = start + MaxKeys < len(keys)

        response = {
            "IsTruncated": truncated,
            "KeyCount": len(page),
            "Contents": [
                {
                    "Key": key,
                    "Size": len(self.objects[key]["data"]),
                    "ETag": self.objects[key]["etag"],
                    "LastModified": self.objects[key]["last_modified"],
                }
                for key in page
            ],
        }
        if not page:
            del response["Contents"]
        if truncated and not self.drop_continuation_token:
            response["NextContinuationToken"] = str(start + MaxKeys)
        return response

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
        self._check("GeneratePresignedUrl")
        return self._signer.generate_presigned_url(
            ClientMethod=ClientMethod, Params=Params, ExpiresIn=ExpiresIn
        )

    def head_bucket(self, Bucket):
        if not self.bucket_exists:
            raise client_error("404", "HeadBucket")
        return {}


@pytest.fixture(scope="function")
def fake_s3() -> FakeS3:
    """Empty in-memory bucket."""
    return FakeS3()


@pytest.fixture(scope="function")
def storage_client(fake_s3: FakeS3) -> S3StorageClient:
    """Storage client bound to the fake bucket."""
    return S3StorageClient(client=fake_s3, bucket=TEST_BUCKET)


@pytest.fixture(scope="function")
def gateway(storage_client: S3StorageClient) -> StorageGateway:
    """Gateway with small pages and chunks so pagination and streaming are exercised."""
    return StorageGateway(
        storage_client,
        page_size=2,
        presign_expiry_minutes=10,
        chunk_size=4
    )


def get_test_app(gateway: StorageGateway) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from s3gateway.main import app
    from s3gateway.storage.gateway import get_storage_gateway

    app.dependency_overrides[get_storage_gateway] = lambda: gateway

    return app


@pytest.fixture(scope="function")
async def client(gateway: StorageGateway) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(gateway)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
