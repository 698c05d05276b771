"""
Production logging utility for structured JSON logging.

Mandatory fields on every record:
- timestamp (ISO8601)
- level
- service
- event

Storage events add:
- operation (upload, download, download_zip, presign, delete, info, list)
- file_key (when the operation targets one object)
- duration_ms / bytes (when known)

Usage:
    from s3gateway.utils.logging import configure_logging, log_storage_operation
    
    configure_logging('s3-gateway', 'INFO')
    log_storage_operation(logger, 'upload', file_key='ORG1/2025/09/05/...', bytes=1024)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""
    
    _service_name = None
    _configured = False
    
    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.
        
        Args:
            service_name: Service identifier
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured
        
        cls._service_name = service_name
        
        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []
        
        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )
        
        # Console handler (for docker logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        
        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True
        
        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    operation: str,
    file_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.
    
    Args:
        event: Event name (mandatory)
        operation: Storage operation name (mandatory)
        file_key: Optional object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
        
    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        "operation": operation,
        **kwargs
    }
    
    if file_key:
        extra["file_key"] = file_key
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
    
    return extra


def log_storage_operation(
    logger: logging.Logger,
    operation: str,
    file_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a completed storage operation.
    
    Args:
        logger: Logger instance
        operation: Operation name (required)
        file_key: Optional object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields (prefix, count, bytes, ...)
    """
    extra = _build_log_extra(
        event="storage_operation",
        operation=operation,
        file_key=file_key,
        duration_ms=duration_ms,
        **kwargs
    )
    
    message = f"Storage {operation} completed"
    if file_key:
        message += f": {file_key}"
    
    logger.info(message, extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: str,
    file_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    include_traceback: bool = True,
    **kwargs
):
    """
    Log a failed storage operation.
    
    Args:
        logger: Logger instance
        operation: Operation name (required)
        error: Error message (required)
        file_key: Optional object key
        duration_ms: Optional duration in milliseconds
        include_traceback: Whether to include stack trace (default: True)
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        operation=operation,
        file_key=file_key,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )
    
    message = f"Storage {operation} failed"
    if file_key:
        message += f" for {file_key}"
    message += f" - {error}"
    
    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
            return
    logger.error(message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
