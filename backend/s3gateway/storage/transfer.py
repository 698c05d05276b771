"""
Streaming transfers between clients and the storage backend.

Nothing here buffers a whole object:
- uploads hand the request's file object to put_object, which reads it
  incrementally
- downloads iterate the backend body in fixed-size chunks
- zip downloads write entries into an unseekable sink that is drained
  after every chunk, so at most one chunk (plus zip framing) is held

Backend bodies are closed on every exit path, including the transport
abandoning the response early.
"""
import logging
import time
import zipfile
from datetime import date
from typing import BinaryIO, Iterable, Iterator, Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError

from s3gateway.constants import DEFAULT_CONTENT_TYPE, ZIP_CONTENT_TYPE
from s3gateway.errors import StorageOperationFailed
from s3gateway.storage.keys import filename_from_key
from s3gateway.storage.s3_client import S3StorageClient
from s3gateway.utils.logging import log_storage_failure, log_storage_operation
from s3gateway.utils.metrics import storage_bytes_transferred_total

logger = logging.getLogger(__name__)


def content_disposition(filename: str) -> str:
    """Attachment header with a percent-encoded filename (spaces as %20, `*` kept, `~` escaped)."""
    encoded = quote(filename, safe="*").replace("~", "%7E")
    return f'attachment; filename="{encoded}"'


def attachment_headers(filename: str, content_length: Optional[int] = None) -> dict[str, str]:
    """
    Response headers for a file download.

    Content-Length is only set when known and non-zero. The disposition
    header is exposed to browser clients through CORS.
    """
    headers = {
        "Content-Disposition": content_disposition(filename),
        "Access-Control-Expose-Headers": "Content-Disposition",
    }
    if content_length:
        headers["Content-Length"] = str(content_length)
    return headers


class DownloadStream:
    """
    Open read channel for one object plus the headers to send with it.

    Iterating yields the body in chunks; the body is closed when
    iteration ends, fails, or close() is called, whichever comes first.
    """

    def __init__(self, object_key: str, response: dict, chunk_size: int):
        self.object_key = object_key
        self.media_type = response.get('ContentType') or DEFAULT_CONTENT_TYPE
        self.content_length = response.get('ContentLength')
        self.headers = attachment_headers(
            filename_from_key(object_key), self.content_length
        )
        self._body = response['Body']
        self._chunk_size = chunk_size
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        start_time = time.time()
        sent = 0
        try:
            for chunk in self._body.iter_chunks(self._chunk_size):
                sent += len(chunk)
                yield chunk
        except (BotoCoreError, OSError) as e:
            log_storage_failure(
                logger, "download", str(e), file_key=self.object_key, bytes=sent
            )
            raise StorageOperationFailed(
                "File download failed", operation="download", key=self.object_key
            ) from e
        finally:
            storage_bytes_transferred_total.labels(direction="download").inc(sent)
            self.close()

        log_storage_operation(
            logger, "download", file_key=self.object_key,
            duration_ms=(time.time() - start_time) * 1000, bytes=sent
        )

    def close(self):
        """Release the backend body. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._body.close()


class _ChunkSink:
    """
    Write-only, unseekable byte sink for zipfile.

    Without tell()/seek() zipfile falls back to data descriptors, which
    lets the archive be produced front to back.
    """

    def __init__(self):
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer += data
        return len(data)

    def flush(self):
        pass

    def drain(self) -> bytes:
        """Return and clear everything written so far."""
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


class TransferManager:
    """Upload, single-object download and multi-object zip download."""

    def __init__(self, client: S3StorageClient, chunk_size: int):
        self._client = client
        self._chunk_size = chunk_size

    def upload(
        self,
        object_key: str,
        fileobj: BinaryIO,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None
    ) -> str:
        """
        Stream fileobj to the backend under object_key.

        Returns:
            The object key

        Raises:
            StorageOperationFailed: backend or read error (no retry)
        """
        start_time = time.time()
        try:
            self._client.put_object(
                object_key, fileobj,
                content_type=content_type,
                content_length=content_length
            )
        except OSError as e:
            log_storage_failure(logger, "upload", str(e), file_key=object_key)
            raise StorageOperationFailed(
                "File upload failed", operation="upload", key=object_key
            ) from e

        if content_length:
            storage_bytes_transferred_total.labels(direction="upload").inc(content_length)

        log_storage_operation(
            logger, "upload", file_key=object_key,
            duration_ms=(time.time() - start_time) * 1000,
            bytes=content_length, content_type=content_type
        )
        return object_key

    def open_download(self, object_key: str) -> DownloadStream:
        """
        Open the backend body for object_key.

        Done before any response byte is sent, so a missing object still
        produces an error response instead of a broken stream.
        """
        response = self._client.get_object(object_key)
        return DownloadStream(object_key, response, self._chunk_size)

    @staticmethod
    def zip_filename(today: Optional[date] = None) -> str:
        """Archive name: {yyyy-mm-dd}.zip"""
        return f"{(today or date.today()).isoformat()}.zip"

    @staticmethod
    def zip_media_type() -> str:
        return ZIP_CONTENT_TYPE

    def stream_zip(self, object_keys: Iterable[str]) -> Iterator[bytes]:
        """
        Yield a zip archive containing object_keys, in order.

        Each entry is named by the last segment of its key. The first
        failing object aborts the archive with StorageOperationFailed;
        whatever was already yielded stays on the wire.
        """
        start_time = time.time()
        sink = _ChunkSink()
        count = 0
        sent = 0

        with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            for object_key in object_keys:
                response = self._client.get_object(object_key)
                body = response['Body']
                try:
                    entry_info = zipfile.ZipInfo(
                        filename_from_key(object_key),
                        date_time=time.localtime(time.time())[:6]
                    )
                    entry_info.compress_type = zipfile.ZIP_DEFLATED
                    entry_info.file_size = response.get('ContentLength') or 0

                    with archive.open(entry_info, mode="w") as entry:
                        for chunk in body.iter_chunks(self._chunk_size):
                            entry.write(chunk)
                            storage_bytes_transferred_total.labels(direction="download").inc(len(chunk))
                            data = sink.drain()
                            if data:
                                sent += len(data)
                                yield data
                except (BotoCoreError, OSError, RuntimeError, zipfile.LargeZipFile) as e:
                    log_storage_failure(
                        logger, "download_zip", str(e), file_key=object_key,
                        entries_written=count
                    )
                    raise StorageOperationFailed(
                        "Failed to write zip entry", operation="download_zip", key=object_key
                    ) from e
                finally:
                    body.close()

                count += 1
                data = sink.drain()
                if data:
                    sent += len(data)
                    yield data

        # Central directory is written when the archive closes
        data = sink.drain()
        if data:
            sent += len(data)
            yield data

        log_storage_operation(
            logger, "download_zip",
            duration_ms=(time.time() - start_time) * 1000,
            entries=count, bytes=sent
        )
