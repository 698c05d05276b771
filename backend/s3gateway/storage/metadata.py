"""
Head-only metadata lookup for a single object.
"""
from s3gateway.schemas.storage import ObjectEntry
from s3gateway.storage.s3_client import S3StorageClient


class MetadataInspector:
    """Reads size, content type, etag and last-modified without the body."""
    
    def __init__(self, client: S3StorageClient):
        self._client = client
    
    def inspect(self, object_key: str) -> ObjectEntry:
        """
        Fetch metadata for object_key.
        
        Raises:
            StorageOperationFailed: object missing or backend error
        """
        head = self._client.head_object(object_key)
        return ObjectEntry.from_head(object_key, head)
