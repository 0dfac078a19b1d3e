"""Service layer for business logic."""

from metadataservice.services.file_service import FileService
from metadataservice.services.ingest_pipeline import IngestPipeline, IngestResult
from metadataservice.services.retrieval_pipeline import RetrievalPipeline

__all__ = [
    "FileService",
    "IngestPipeline",
    "IngestResult",
    "RetrievalPipeline",
]
