"""
Storage module for S3-compatible object storage.

Objects are addressed as {org_code}/{yyyy}/{mm}/{dd}/{uuid}/{filename}
and streamed through the gateway in both directions.
"""
from s3gateway.storage.s3_client import S3StorageClient
from s3gateway.storage.gateway import StorageGateway, get_storage_gateway

__all__ = ["S3StorageClient", "StorageGateway", "get_storage_gateway"]
