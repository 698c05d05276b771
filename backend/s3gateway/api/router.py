"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from s3gateway.api import health, storage

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(storage.router, prefix="/v1/s3storage", tags=["s3storage"])
