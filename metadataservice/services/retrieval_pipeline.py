"""Retrieval pipeline: index lookup -> ordered block fetch -> byte stream."""

from typing import AsyncIterator, Dict, Optional, Tuple

from blockserver.block_store import BlockStore
from common.exceptions import BlockNotFoundError, CorruptIndexError
from common.hashing import verify_fingerprint
from common.logging_config import get_logger
from common.types import FileRecord
from metadataservice.repositories.file_repository import FileRepository

logger = get_logger(__name__)


class RetrievalPipeline:
    """
    Reconstructs the original bytes of a stored file.

    Fails closed: missing blocks and size disagreements are detected before
    the first byte is handed out, and anything caught later in the stream
    aborts it with CorruptIndexError instead of ending it early.
    """

    def __init__(self, block_store: BlockStore, file_repo: Optional[FileRepository] = None):
        self.block_store = block_store
        self.file_repo = file_repo or FileRepository()

    async def open(self, file_id: str) -> Tuple[FileRecord, AsyncIterator[bytes]]:
        """
        Look up a file and return its record with a stream of its bytes.

        Raises:
            FileRecordNotFoundError: If no record has this id
            CorruptIndexError: If a referenced block is missing or the block
                sizes do not add up to the record size
        """
        record = self.file_repo.get_by_id(file_id)
        await self.validate(record)
        return record, self._stream(record)

    async def validate(self, record: FileRecord) -> None:
        """
        Check that every referenced block exists and that their sizes sum to
        record.size.
        """
        sizes: Dict[str, int] = {}
        total = 0

        for index, fingerprint in enumerate(record.block_hashes):
            if fingerprint not in sizes:
                try:
                    sizes[fingerprint] = await self.block_store.get_size(fingerprint)
                except BlockNotFoundError as e:
                    logger.error(f"File {record.file_id} references missing block {index} ({fingerprint})")
                    raise CorruptIndexError(
                        f"File {record.file_id} references missing block {fingerprint} at index {index}"
                    ) from e
            total += sizes[fingerprint]

        if total != record.size:
            logger.error(f"File {record.file_id} blocks hold {total} bytes, record says {record.size}")
            raise CorruptIndexError(
                f"File {record.file_id} blocks hold {total} bytes but the record size is {record.size}"
            )

    async def _stream(self, record: FileRecord) -> AsyncIterator[bytes]:
        emitted = 0
        total_blocks = len(record.block_hashes)
        logger.info(f"Starting retrieval of file {record.file_id} ({total_blocks} blocks, {record.size} bytes)")

        for index, fingerprint in enumerate(record.block_hashes):
            try:
                data = await self.block_store.get(fingerprint)
            except BlockNotFoundError as e:
                logger.error(
                    f"Block {fingerprint} (index {index}) of file {record.file_id} disappeared. "
                    f"Streamed {emitted}/{record.size} bytes before failure."
                )
                raise CorruptIndexError(f"Block {fingerprint} of file {record.file_id} is missing") from e

            if not verify_fingerprint(data, fingerprint):
                logger.error(f"Block {fingerprint} (index {index}) of file {record.file_id} is damaged")
                raise CorruptIndexError(f"Block {fingerprint} of file {record.file_id} is damaged")

            emitted += len(data)
            if emitted > record.size:
                raise CorruptIndexError(
                    f"File {record.file_id} yields more than its recorded {record.size} bytes"
                )

            logger.debug(f"Streaming block {index + 1}/{total_blocks} of file {record.file_id}")
            yield data

        if emitted != record.size:
            raise CorruptIndexError(
                f"File {record.file_id} yielded {emitted} bytes but the record size is {record.size}"
            )

        logger.info(f"Successfully streamed file {record.file_id}: {emitted} bytes total")

    async def read_all(self, file_id: str) -> bytes:
        """
        Materialise a whole file in memory. Never returns partial content.
        """
        record, stream = await self.open(file_id)
        buffer = bytearray()
        async for piece in stream:
            buffer.extend(piece)
        return bytes(buffer)
