"""
FastAPI application entry point.
Sets up the API with lifespan events for logging initialization.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from s3gateway.config import settings
from s3gateway.api.router import api_router
from s3gateway.errors import GatewayError, gateway_error_handler
from s3gateway.middleware.metrics_middleware import MetricsMiddleware
from s3gateway.storage.gateway import get_storage_gateway
from s3gateway.utils.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Configure logging and build the storage gateway
    """
    configure_logging(settings.service_name, settings.log_level)

    # Fail fast in production if storage is not configured
    gateway = get_storage_gateway()
    if not gateway.client.is_configured and settings.environment == "production":
        raise RuntimeError("S3 storage is not configured")

    yield


# Create FastAPI app
app = FastAPI(
    title="S3 Storage Gateway",
    description="File upload, download, listing and presigned URLs over S3-compatible storage",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Gateway errors are rendered as the standard envelope
app.add_exception_handler(GatewayError, gateway_error_handler)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "S3 Storage Gateway",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
