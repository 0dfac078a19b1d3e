"""Pydantic schemas for request/response validation."""

from metadataservice.schemas.common import ErrorResponse
from metadataservice.schemas.files import FileRecordResponse, StorageConfigResponse

__all__ = [
    "ErrorResponse",
    "FileRecordResponse",
    "StorageConfigResponse",
]
