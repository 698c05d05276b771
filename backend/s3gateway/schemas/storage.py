"""
Pydantic schemas for storage endpoints.
"""
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ObjectEntry(BaseModel):
    """Read-only projection of a stored object."""
    file_key: str = Field(..., description="Object key in storage bucket")
    size: int = Field(0, description="Object size in bytes")
    content_type: Optional[str] = Field(None, description="MIME type (not reported by listings)")
    etag: Optional[str] = Field(None, description="Backend content fingerprint")
    last_modified: Optional[datetime] = Field(None, description="Last modification time")
    
    class Config:
        json_schema_extra = {
            "example": {
                "file_key": "ORG0001/2025/09/05/6f1c.../report.pdf",
                "size": 1048576,
                "content_type": "application/pdf",
                "etag": "\"9b2cf535f27731c974343645a3985328\"",
                "last_modified": "2025-09-05T01:02:03Z"
            }
        }
    
    @classmethod
    def from_listing(cls, content: dict) -> "ObjectEntry":
        """Build from one list_objects_v2 'Contents' item."""
        return cls(
            file_key=content['Key'],
            size=content.get('Size', 0),
            etag=content.get('ETag'),
            last_modified=content.get('LastModified'),
        )
    
    @classmethod
    def from_head(cls, object_key: str, head: dict) -> "ObjectEntry":
        """Build from a head_object response."""
        return cls(
            file_key=object_key,
            size=head.get('ContentLength', 0),
            content_type=head.get('ContentType'),
            etag=head.get('ETag'),
            last_modified=head.get('LastModified'),
        )


class PresignedUrl(BaseModel):
    """Time-bounded signed retrieval URL."""
    url: str = Field(..., description="Presigned GET URL")
    expires_in: int = Field(..., description="URL lifetime in seconds")
    expires_at: datetime = Field(..., description="UTC instant the URL stops working")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for every JSON response, success or failure."""
    code: int = Field(200, description="HTTP status code")
    message: str = Field("OK", description="Human-readable result")
    data: Optional[T] = None
    
    @classmethod
    def build(cls, data: Any = None, message: str = "OK") -> "ApiResponse":
        return cls(code=200, message=message, data=data)
