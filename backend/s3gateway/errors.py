"""
Gateway error types and the FastAPI handler that renders them.

Two kinds reach the caller:
- InvalidRequest: caller input violates a precondition (400)
- StorageOperationFailed: backend or I/O failure (500)

Both are terminal for the request; nothing is retried here.
"""
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from s3gateway.utils.metrics import errors_total


class GatewayError(Exception):
    """Base class for errors surfaced to API callers."""
    
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(GatewayError):
    """Caller-supplied input is missing or malformed."""
    
    status_code = status.HTTP_400_BAD_REQUEST


class StorageOperationFailed(GatewayError):
    """A put/get/head/delete/list/presign call or a zip write failed."""
    
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    
    def __init__(self, message: str, operation: str, key: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render a GatewayError as the standard response envelope."""
    errors_total.labels(error_type=type(exc).__name__).inc()
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.status_code,
            "message": exc.message,
            "data": None,
        }
    )
