"""
Pydantic schemas for request/response validation.
"""
from s3gateway.schemas.storage import ApiResponse, ObjectEntry, PresignedUrl

__all__ = ["ApiResponse", "ObjectEntry", "PresignedUrl"]
