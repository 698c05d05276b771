"""
S3-compatible storage client.

Uses boto3 with the S3 API against any S3-compatible endpoint.
Every call targets the configured bucket, is timed and counted in
Prometheus, and translates botocore failures into StorageOperationFailed
after logging them with the operation name and object key.
"""
import logging
import time
from typing import Any, BinaryIO, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3gateway.config import settings
from s3gateway.errors import StorageOperationFailed
from s3gateway.utils.logging import log_storage_failure
from s3gateway.utils.metrics import (
    storage_operation_duration_seconds,
    storage_operations_total,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


class S3StorageClient:
    """
    Backend capability used by the gateway components.

    Offers put/get/head/delete/list-page/presign against a single bucket.
    A preconfigured boto3 client can be injected (tests, custom sessions);
    otherwise one is built from settings.
    """

    def __init__(self, client: Any = None, bucket: Optional[str] = None):
        """
        Initialize the storage client.

        Fails gracefully if not configured: the client stays unconfigured
        and every operation raises StorageOperationFailed.
        """
        self._bucket = bucket or settings.s3_bucket
        self._client = client

        if client is not None:
            return

        if not all([
            settings.s3_endpoint,
            settings.s3_access_key,
            settings.s3_secret_key
        ]):
            logger.warning(
                "S3 storage not configured. "
                "Set S3_ENDPOINT, S3_ACCESS_KEY, and S3_SECRET_KEY."
            )
            return

        # Path-style addressing and SigV4 work across S3-compatible stores
        self._client = boto3.client(
            's3',
            endpoint_url=settings.s3_endpoint,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            )
        )
        logger.info(f"S3 client initialized for bucket: {self._bucket}")

    @property
    def is_configured(self) -> bool:
        """Check if the boto3 client is available."""
        return self._client is not None

    @property
    def bucket(self) -> str:
        """Get configured bucket name."""
        return self._bucket

    def _call(self, operation: str, method: str, key: Optional[str] = None, **params) -> Any:
        """Invoke a boto3 method, recording metrics and translating errors."""
        if not self.is_configured:
            log_storage_failure(
                logger, operation, "storage backend not configured",
                file_key=key, include_traceback=False
            )
            raise StorageOperationFailed(
                "Storage service not configured", operation=operation, key=key
            )

        start_time = time.time()
        try:
            result = getattr(self._client, method)(**params)
        except ClientError as e:
            storage_operations_total.labels(operation=operation, status="error").inc()
            log_storage_failure(
                logger, operation, str(e), file_key=key,
                duration_ms=(time.time() - start_time) * 1000,
                error_code=_error_code(e)
            )
            if _error_code(e) in NOT_FOUND_CODES:
                message = f"Object not found: {key}" if key else "Bucket not found"
            else:
                message = f"Storage {operation} failed"
            raise StorageOperationFailed(message, operation=operation, key=key) from e
        except BotoCoreError as e:
            storage_operations_total.labels(operation=operation, status="error").inc()
            log_storage_failure(
                logger, operation, str(e), file_key=key,
                duration_ms=(time.time() - start_time) * 1000
            )
            raise StorageOperationFailed(
                f"Storage {operation} failed", operation=operation, key=key
            ) from e

        storage_operations_total.labels(operation=operation, status="success").inc()
        storage_operation_duration_seconds.labels(operation=operation).observe(
            time.time() - start_time
        )
        return result

    def put_object(
        self,
        object_key: str,
        body: BinaryIO,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None
    ) -> dict:
        """
        Upload a file-like body under object_key.

        boto3 reads the body incrementally while sending, so the payload
        is never held in memory as a whole.

        Args:
            object_key: The S3 object key (path in bucket)
            body: Readable binary file object
            content_type: MIME type stored with the object
            content_length: Body size in bytes, when known

        Returns:
            put_object response (ETag, ...)
        """
        params = {'Bucket': self.bucket, 'Key': object_key, 'Body': body}
        if content_type:
            params['ContentType'] = content_type
        if content_length is not None:
            params['ContentLength'] = content_length

        return self._call("upload", "put_object", key=object_key, **params)

    def get_object(self, object_key: str) -> dict:
        """
        Open a read channel for object_key.

        The caller owns response['Body'] and must close it.
        """
        return self._call(
            "download", "get_object", key=object_key,
            Bucket=self.bucket, Key=object_key
        )

    def head_object(self, object_key: str) -> dict:
        """Fetch metadata for object_key without its body."""
        return self._call(
            "info", "head_object", key=object_key,
            Bucket=self.bucket, Key=object_key
        )

    def delete_object(self, object_key: str) -> None:
        """
        Delete an object from the bucket.

        S3 reports success for keys that do not exist, so deleting twice
        is not an error.
        """
        self._call(
            "delete", "delete_object", key=object_key,
            Bucket=self.bucket, Key=object_key
        )

    def list_objects_page(
        self,
        prefix: str,
        max_keys: int,
        continuation_token: Optional[str] = None
    ) -> dict:
        """
        Fetch one list_objects_v2 page.

        Args:
            prefix: Key prefix filter; blank lists the whole bucket
            max_keys: Page size
            continuation_token: Token from the previous page, if any

        Returns:
            Raw list_objects_v2 response
        """
        params = {'Bucket': self.bucket, 'MaxKeys': max_keys}
        if prefix and prefix.strip():
            params['Prefix'] = prefix
        if continuation_token:
            params['ContinuationToken'] = continuation_token

        return self._call("list", "list_objects_v2", **params)

    def generate_presigned_get_url(self, object_key: str, expires_in: int) -> str:
        """
        Generate a presigned GET URL for reading an object.

        The bucket stays private; the URL grants read access until it
        expires. Expiry is enforced by the backend.

        Args:
            object_key: The S3 object key
            expires_in: URL lifetime in seconds

        Returns:
            Presigned URL string
        """
        return self._call(
            "presign", "generate_presigned_url", key=object_key,
            ClientMethod='get_object',
            Params={'Bucket': self.bucket, 'Key': object_key},
            ExpiresIn=expires_in
        )

    def head_bucket(self) -> None:
        """Check that the configured bucket is reachable."""
        self._call("health", "head_bucket", Bucket=self.bucket)
