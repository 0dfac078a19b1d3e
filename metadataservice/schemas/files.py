"""Pydantic schemas for file operation endpoints."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from common.types import FileRecord


class FileRecordResponse(BaseModel):
    """Response model for one stored file."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    file_name: str = Field(alias="fileName")
    size: int
    block_hashes: List[str] = Field(alias="blockHashes")
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileRecordResponse":
        return cls(
            id=record.file_id,
            file_name=record.file_name,
            size=record.size,
            block_hashes=list(record.block_hashes),
            created_at=record.created_at.isoformat() if record.created_at else None,
        )


class StorageConfigResponse(BaseModel):
    """Response model for storage configuration."""
    model_config = ConfigDict(populate_by_name=True)

    block_size: int = Field(alias="blockSize")
