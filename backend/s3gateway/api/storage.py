"""
Storage endpoints.

Operations scoped by organization code (inst_cd) and date:
1. POST /v1/s3storage/upload - Upload a file, returns its object key
2. GET  /v1/s3storage/download - Stream one object as an attachment
3. GET  /v1/s3storage/download-zip - Stream several objects as one zip
4. POST /v1/s3storage/presigned - Temporary signed GET URL
5. POST /v1/s3storage/delete - Delete an object
6. POST /v1/s3storage/info - Object metadata
7. POST /v1/s3storage/list - Objects under an org/date prefix

Endpoints are plain (sync) functions: boto3 blocks, so FastAPI runs them
and their streaming bodies in its threadpool.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from s3gateway.schemas.storage import ApiResponse, ObjectEntry, PresignedUrl
from s3gateway.storage.gateway import StorageGateway, get_storage_gateway
from s3gateway.storage.transfer import TransferManager, attachment_headers

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=ApiResponse[str])
def upload_object(
    file: UploadFile = File(..., description="File to upload"),
    inst_cd: Optional[str] = Query(None, description="Organization code owning the file"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """
    Upload a file to storage.
    
    The object key is {inst_cd}/{yyyy}/{mm}/{dd}/{uuid}/{filename}.
    Returns 400 if inst_cd is missing or the filename exceeds 900 bytes.
    """
    logger.debug("upload_object")
    object_key = gateway.upload(
        inst_cd,
        file.filename,
        file.file,
        content_type=file.content_type,
        content_length=file.size
    )
    return ApiResponse.build(object_key)


@router.get("/download")
def download_object(
    file_key: str = Query(..., description="Object key (upload path + filename)"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """
    Stream an object as an attachment.
    
    The backend body is opened before the response starts, so a missing
    object returns an error envelope rather than an empty download.
    """
    logger.debug("download_object")
    stream = gateway.download(file_key)
    
    return StreamingResponse(
        stream,
        media_type=stream.media_type,
        headers=stream.headers,
        background=BackgroundTask(stream.close)
    )


@router.get("/download-zip")
def download_zip(
    file_key_list: list[str] = Query(default=[], description="Object keys to include, in order"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """
    Stream several objects as one zip archive named {today}.zip.
    
    Entries are named by the last segment of each key. If an object
    fails mid-archive the stream is cut short.
    """
    logger.debug("download_zip")
    
    return StreamingResponse(
        gateway.download_zip(file_key_list),
        media_type=TransferManager.zip_media_type(),
        headers=attachment_headers(TransferManager.zip_filename())
    )


@router.post("/presigned", response_model=ApiResponse[PresignedUrl])
def get_presigned_url(
    file_key: str = Query(..., description="Object key (upload path + filename)"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """
    Create a temporary signed URL for downloading an object.
    
    Expiry defaults to 10 minutes (S3_PRESIGN_EXPIRATION_MINUTES).
    """
    logger.debug("get_presigned_url")
    return ApiResponse.build(gateway.presign(file_key))


@router.post("/delete", response_model=ApiResponse[str])
def delete_object(
    file_key: str = Query(..., description="Object key to delete"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """Delete a stored object."""
    logger.info("delete_object")
    gateway.delete(file_key)
    return ApiResponse.build(file_key, message=f"{file_key} deleted")


@router.post("/info", response_model=ApiResponse[ObjectEntry])
def view_object(
    file_key: str = Query(..., description="Object key to inspect"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """Get object metadata (size, content type, etag, last modified)."""
    logger.info("view_object")
    return ApiResponse.build(gateway.info(file_key))


@router.post("/list", response_model=ApiResponse[list[ObjectEntry]])
def list_objects(
    inst_cd: Optional[str] = Query(None, description="Organization code"),
    date_string: Optional[str] = Query(None, description="Date bucket: yyyy, yyyyMM or yyyyMMdd"),
    gateway: StorageGateway = Depends(get_storage_gateway)
):
    """
    List stored objects under an organization and date.
    
    Without inst_cd the whole bucket is listed. All pages are fetched
    before responding.
    """
    logger.debug("list_objects")
    return ApiResponse.build(gateway.list_objects(inst_cd, date_string))
