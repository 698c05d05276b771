"""
Health check endpoint.
Verifies the storage bucket is reachable.
"""
from fastapi import APIRouter, Depends, HTTPException

from s3gateway.errors import StorageOperationFailed
from s3gateway.storage.gateway import StorageGateway, get_storage_gateway

router = APIRouter()


@router.get("")
def health_check(gateway: StorageGateway = Depends(get_storage_gateway)):
    """
    Health check endpoint.
    Returns status of the storage backend connection.
    """
    health_status = {
        "status": "healthy",
        "storage": "unknown",
        "bucket": gateway.client.bucket
    }
    
    try:
        gateway.client.head_bucket()
        health_status["storage"] = "connected"
    except StorageOperationFailed as e:
        health_status["storage"] = f"error: {e.message}"
        health_status["status"] = "unhealthy"
    
    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)
    
    return health_status
