"""
Gateway facade composing key/prefix building with the storage components.

Each public method corresponds to one externally exposed operation:
upload, download, download_zip, presign, delete, info, list.
"""
import logging
import time
from typing import BinaryIO, Iterator, Optional

from s3gateway.config import settings
from s3gateway.errors import InvalidRequest
from s3gateway.schemas.storage import ObjectEntry, PresignedUrl
from s3gateway.storage.keys import build_object_key, build_prefix
from s3gateway.storage.listing import ListingAggregator
from s3gateway.storage.metadata import MetadataInspector
from s3gateway.storage.presign import UrlIssuer
from s3gateway.storage.s3_client import S3StorageClient
from s3gateway.storage.transfer import DownloadStream, TransferManager
from s3gateway.utils.logging import log_storage_failure, log_storage_operation

logger = logging.getLogger(__name__)


class StorageGateway:
    """
    Storage operations scoped by organization code and date.

    Collaborators are built from the supplied backend client; no
    per-request state is kept on the instance.
    """

    def __init__(
        self,
        client: S3StorageClient,
        page_size: int = 1000,
        presign_expiry_minutes: int = 10,
        chunk_size: int = 64 * 1024
    ):
        self.client = client
        self.listing = ListingAggregator(client, page_size)
        self.transfer = TransferManager(client, chunk_size)
        self.metadata = MetadataInspector(client)
        self.urls = UrlIssuer(client, presign_expiry_minutes)

    def upload(
        self,
        org_code: Optional[str],
        original_filename: Optional[str],
        fileobj: BinaryIO,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None
    ) -> str:
        """
        Store a new object and return its generated key.

        Raises:
            InvalidRequest: missing org code or filename too long
            StorageOperationFailed: backend failure
        """
        try:
            object_key = build_object_key(org_code, original_filename)
        except InvalidRequest as e:
            log_storage_failure(
                logger, "upload", e.message, include_traceback=False,
                org_code=org_code, original_filename=original_filename
            )
            raise

        return self.transfer.upload(
            object_key, fileobj,
            content_type=content_type,
            content_length=content_length
        )

    def download(self, object_key: str) -> DownloadStream:
        """Open a streaming download for object_key."""
        return self.transfer.open_download(object_key)

    def download_zip(self, object_keys: list[str]) -> Iterator[bytes]:
        """Stream a zip archive of object_keys."""
        return self.transfer.stream_zip(object_keys)

    def presign(self, object_key: str) -> PresignedUrl:
        """Issue a presigned GET URL with the configured expiry."""
        presigned = self.urls.issue(object_key)
        log_storage_operation(
            logger, "presign", file_key=object_key, expires_in=presigned.expires_in
        )
        return presigned

    def delete(self, object_key: str) -> None:
        """Delete object_key."""
        self.client.delete_object(object_key)
        log_storage_operation(logger, "delete", file_key=object_key)

    def info(self, object_key: str) -> ObjectEntry:
        """Head-only metadata for object_key."""
        return self.metadata.inspect(object_key)

    def list_objects(self, org_code: Optional[str] = None, date_string: Optional[str] = None) -> list[ObjectEntry]:
        """
        List every object under the org/date prefix.

        A blank org code lists the whole bucket.
        """
        start_time = time.time()
        prefix = build_prefix(org_code, date_string)
        entries = self.listing.list_entries(prefix)

        log_storage_operation(
            logger, "list",
            duration_ms=(time.time() - start_time) * 1000,
            prefix=prefix, count=len(entries)
        )
        return entries


# Singleton instance
_storage_gateway: Optional[StorageGateway] = None


def get_storage_gateway() -> StorageGateway:
    """
    Get the singleton gateway built from settings.

    Also used as a FastAPI dependency so tests can override it.
    """
    global _storage_gateway
    if _storage_gateway is None:
        _storage_gateway = StorageGateway(
            S3StorageClient(),
            page_size=settings.s3_page_size,
            presign_expiry_minutes=settings.s3_presign_expiration_minutes,
            chunk_size=settings.s3_stream_chunk_size
        )
    return _storage_gateway
