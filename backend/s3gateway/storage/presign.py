"""
Presigned URL issuance.

Issued URLs carry their own expiry, enforced by the storage backend.
Nothing is tracked or revocable on this side.
"""
import logging
from datetime import datetime, timedelta, timezone

from s3gateway.schemas.storage import PresignedUrl
from s3gateway.storage.s3_client import S3StorageClient

logger = logging.getLogger(__name__)


class UrlIssuer:
    """Requests time-bounded GET URLs from the backend."""
    
    def __init__(self, client: S3StorageClient, expiry_minutes: int):
        self._client = client
        self._expiry_minutes = expiry_minutes
    
    @property
    def expires_in(self) -> int:
        """URL lifetime in seconds."""
        return self._expiry_minutes * 60
    
    def issue(self, object_key: str) -> PresignedUrl:
        """
        Generate a presigned GET URL for object_key.
        
        Raises:
            StorageOperationFailed: signing or backend error
        """
        issued_at = datetime.now(timezone.utc)
        url = self._client.generate_presigned_get_url(object_key, self.expires_in)
        
        logger.debug(f"Generated presigned read URL for {object_key} (expires in {self.expires_in}s)")
        
        return PresignedUrl(
            url=url,
            expires_in=self.expires_in,
            expires_at=issued_at + timedelta(seconds=self.expires_in),
        )
