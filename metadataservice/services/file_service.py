"""File service: the list / upload / download interface of the core."""

import asyncio
from typing import AsyncIterator, List, Optional, Tuple

from blockserver.block_store import BlockStore
from common.logging_config import get_logger
from common.types import FileRecord
from metadataservice.config import BLOCK_SIZE
from metadataservice.repositories.file_repository import FileRepository
from metadataservice.service_locator import get_block_store
from metadataservice.services.ingest_pipeline import IngestPipeline, IngestResult, ProgressCallback
from metadataservice.services.retrieval_pipeline import RetrievalPipeline

logger = get_logger(__name__)


class FileService:
    def __init__(self, block_store: Optional[BlockStore] = None, block_size: Optional[int] = None):
        self.block_store = block_store or get_block_store()
        self.block_size = block_size or BLOCK_SIZE
        self.file_repo = FileRepository()
        self.ingest_pipeline = IngestPipeline(self.block_store, self.block_size, self.file_repo)
        self.retrieval_pipeline = RetrievalPipeline(self.block_store, self.file_repo)

    async def list_files(self) -> List[FileRecord]:
        """Snapshot of all file records in creation order."""
        return self.file_repo.list_files()

    async def get_file(self, file_id: str) -> FileRecord:
        return self.file_repo.get_by_id(file_id)

    async def upload_file(
        self,
        file_name: str,
        stream,
        progress_callback: Optional[ProgressCallback] = None,
        total_size: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> FileRecord:
        result = await self.ingest_file(file_name, stream, progress_callback, total_size, cancel_event)
        return result.record

    async def ingest_file(
        self,
        file_name: str,
        stream,
        progress_callback: Optional[ProgressCallback] = None,
        total_size: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> IngestResult:
        return await self.ingest_pipeline.ingest(
            file_name,
            stream,
            total_size=total_size,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )

    async def download_file(self, file_id: str) -> Tuple[FileRecord, AsyncIterator[bytes]]:
        """
        Return a file record and a stream of its reconstructed bytes.

        Missing records and detectable index corruption raise before the
        stream is handed out.
        """
        return await self.retrieval_pipeline.open(file_id)

    async def read_file(self, file_id: str) -> bytes:
        return await self.retrieval_pipeline.read_all(file_id)
