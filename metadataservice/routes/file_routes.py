"""File operation API routes."""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import StreamingResponse

from common.logging_config import get_logger
from metadataservice.config import API_PREFIX
from metadataservice.schemas.common import ErrorResponse
from metadataservice.schemas.files import FileRecordResponse, StorageConfigResponse
from metadataservice.services.file_service import FileService
from metadataservice.utils import content_disposition

logger = get_logger(__name__)

router = APIRouter(prefix=API_PREFIX, tags=["Files"])


def get_file_service() -> FileService:
    return FileService()


@router.get("/files", response_model=List[FileRecordResponse])
async def list_files(file_service: FileService = Depends(get_file_service)):
    """
    List every stored file in creation order.

    Returns:
        - Array of {id, fileName, size, blockHashes, createdAt}
    """
    records = await file_service.list_files()
    return [FileRecordResponse.from_record(record) for record in records]


@router.get(
    "/files/download/{file_id}",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}
)
async def download_file(file_id: str, file_service: FileService = Depends(get_file_service)):
    """
    Download a file by id.

    Parameters:
        - file_id: UUID of file to download

    Returns:
        - StreamingResponse with the reconstructed file bytes

    Raises:
        - 404: File not found
        - 409: File index is corrupt (missing block or size mismatch)
        - 503: Block store unavailable
    """
    record, stream = await file_service.download_file(file_id)

    return StreamingResponse(
        stream,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": content_disposition(record.file_name),
            "Content-Length": str(record.size),
        }
    )


@router.get("/files/{file_id}", response_model=FileRecordResponse, responses={404: {"model": ErrorResponse}})
async def get_file(file_id: str, file_service: FileService = Depends(get_file_service)):
    record = await file_service.get_file(file_id)
    return FileRecordResponse.from_record(record)


@router.post(
    "/files/upload",
    response_model=FileRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}
)
async def upload_file(
    file: UploadFile = File(...),
    file_service: FileService = Depends(get_file_service)
):
    """
    Upload one file; it is split into blocks, deduplicated and indexed.

    Parameters:
        - file: File to upload (multipart/form-data)

    Returns:
        - The created file record

    Raises:
        - 400: Upload stream could not be read completely
        - 503: Block store unavailable
    """
    file_name = file.filename or "unnamed"
    logger.info(f"Upload received: {file_name} (size={file.size})")

    record = await file_service.upload_file(
        file_name,
        file,
        total_size=file.size,
    )
    return FileRecordResponse.from_record(record)


@router.get("/config", response_model=StorageConfigResponse)
async def get_storage_config(file_service: FileService = Depends(get_file_service)):
    """
    Report the block size used to split uploaded files.
    """
    return StorageConfigResponse(block_size=file_service.block_size)
