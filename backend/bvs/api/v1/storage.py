"""
File storage API endpoints.

Handlers are plain functions: boto3 is blocking, so FastAPI runs them in its
threadpool.
"""

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, Response, UploadFile, status

from bvs.api.deps import StorageServiceDep
from bvs.core.exceptions import FileTooLargeError
from bvs.core.logging import get_logger
from bvs.schemas.common import ApiResponse
from bvs.schemas.storage import DownloadUrlResponse, StoredObjectResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/storage", tags=["storage"])


@router.post(
    "/files",
    response_model=ApiResponse[StoredObjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
)
def upload_file(
    file: Annotated[UploadFile, File(description="File to store")],
    service: StorageServiceDep,
) -> ApiResponse[StoredObjectResponse]:
    limit = service.settings.storage_max_file_size
    if file.size is not None and file.size > limit:
        raise FileTooLargeError(file.size, limit)
    # Never buffer more than one byte past the limit.
    content = file.file.read(limit + 1)
    if len(content) > limit:
        raise FileTooLargeError(file.size or len(content), limit)
    stored = service.upload_file(file.filename or "", content, file.content_type)
    return ApiResponse.ok(
        StoredObjectResponse.model_validate(stored),
        "File uploaded successfully",
    )


@router.get(
    "/files/{object_id}",
    response_class=Response,
    summary="Download file",
)
def download_file(object_id: str, service: StorageServiceDep) -> Response:
    downloaded = service.download_file(object_id)
    info = downloaded.info
    return Response(
        content=downloaded.content,
        media_type=info.content_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(info.filename)}",
            "X-Checksum-SHA256": info.checksum,
        },
    )


@router.get(
    "/files/{object_id}/info",
    response_model=ApiResponse[StoredObjectResponse],
    summary="Get file metadata",
)
def get_file_info(object_id: str, service: StorageServiceDep) -> ApiResponse[StoredObjectResponse]:
    info = service.get_file_info(object_id)
    return ApiResponse.ok(StoredObjectResponse.model_validate(info), "File info retrieved")


@router.get(
    "/files/{object_id}/url",
    response_model=ApiResponse[DownloadUrlResponse],
    summary="Get presigned download URL",
)
def get_download_url(object_id: str, service: StorageServiceDep) -> ApiResponse[DownloadUrlResponse]:
    url = service.get_download_url(object_id)
    return ApiResponse.ok(
        DownloadUrlResponse(
            id=object_id,
            url=url,
            expires_in=service.settings.presigned_url_expiration,
        ),
        "Download URL generated",
    )


@router.delete(
    "/files/{object_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete file",
)
def delete_file(object_id: str, service: StorageServiceDep) -> Response:
    service.delete_file(object_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
