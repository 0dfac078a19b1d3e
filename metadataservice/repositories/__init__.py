"""Repository layer for data access."""

from metadataservice.repositories.file_repository import FileRepository, validate_record

__all__ = [
    "FileRepository",
    "validate_record",
]
