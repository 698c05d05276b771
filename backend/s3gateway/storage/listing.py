"""
Listing aggregation over list_objects_v2 pagination.
"""
import logging
from typing import Iterator

from s3gateway.errors import StorageOperationFailed
from s3gateway.schemas.storage import ObjectEntry
from s3gateway.storage.s3_client import S3StorageClient
from s3gateway.utils.logging import log_storage_failure

logger = logging.getLogger(__name__)


class ListingAggregator:
    """
    Walks every page under a prefix and flattens the results.

    Entries keep the backend's enumeration order (lexicographic by key
    on S3). A failure on any page raises StorageOperationFailed and the
    pages fetched so far are discarded.
    """
    
    def __init__(self, client: S3StorageClient, page_size: int):
        self._client = client
        self._page_size = page_size
    
    def iter_entries(self, prefix: str) -> Iterator[ObjectEntry]:
        """
        Lazily yield entries page by page.
        
        Args:
            prefix: Key prefix; blank lists the whole bucket
        """
        continuation_token = None
        
        while True:
            response = self._client.list_objects_page(
                prefix, self._page_size, continuation_token
            )
            
            for content in response.get('Contents', []):
                yield ObjectEntry.from_listing(content)
            
            if not response.get('IsTruncated'):
                return
            
            continuation_token = response.get('NextContinuationToken')
            if not continuation_token:
                log_storage_failure(
                    logger, "list", "truncated page without continuation token",
                    include_traceback=False, prefix=prefix
                )
                raise StorageOperationFailed("Storage list failed", operation="list")
    
    def list_entries(self, prefix: str) -> list[ObjectEntry]:
        """
        Return every entry under prefix, fetched to completion.
        
        The full result is held in memory.
        """
        entries = list(self.iter_entries(prefix))
        logger.debug(f"Listed {len(entries)} objects under prefix '{prefix}'")
        return entries
