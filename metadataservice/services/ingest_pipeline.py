"""Ingest pipeline: chunk -> hash -> put-if-absent -> index, for one file."""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional

from blockserver.block_store import BlockStore
from common.constants import BLOCK_SIZE_BYTES
from common.exceptions import (
    IngestCancelledError,
    SourceReadError,
    StorageFaultError,
)
from common.hashing import compute_fingerprint
from common.logging_config import get_logger
from common.types import Fingerprint, FileRecord
from metadataservice.chunker import split_blocks_async
from metadataservice.repositories.file_repository import FileRepository

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one ingest: the new record plus deduplication stats."""
    record: FileRecord
    blocks_written: int
    blocks_deduplicated: int


class ProgressReporter:
    """
    Forwards progress fractions to an observer, clamped to [0, 1] and never
    lower than a value already reported.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._last = 0.0

    @property
    def last(self) -> float:
        return self._last

    def report(self, fraction: float) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        if fraction < self._last:
            fraction = self._last
        self._last = fraction
        if self._callback is not None:
            self._callback(fraction)


class IngestPipeline:
    """
    Turns one input byte stream into a durable FileRecord.

    Blocks are streamed one at a time, so memory use is bounded by the block
    size. The record is created only after the whole stream has been stored;
    blocks written by an aborted ingest stay in the block store unreferenced.
    """

    def __init__(
        self,
        block_store: BlockStore,
        block_size: int = BLOCK_SIZE_BYTES,
        file_repo: Optional[FileRepository] = None
    ):
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self.block_store = block_store
        self.block_size = block_size
        self.file_repo = file_repo or FileRepository()

    async def ingest(
        self,
        file_name: str,
        source,
        total_size: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> IngestResult:
        """
        Ingest a byte stream as a new file.

        Args:
            file_name: Original file name
            source: Object with a read(n) method (sync or async)
            total_size: Declared byte count, if known; used for progress and
                checked against the bytes actually read
            progress_callback: Receives non-decreasing fractions in [0, 1]
            cancel_event: When set, the ingest stops before the next block

        Returns:
            IngestResult with the created FileRecord

        Raises:
            SourceReadError: If the source fails or delivers a different byte count than declared
            StorageFaultError: If the block store fails
            IngestCancelledError: If cancel_event is set before completion
        """
        reporter = ProgressReporter(progress_callback)
        fingerprints: List[Fingerprint] = []
        bytes_processed = 0
        blocks_written = 0
        blocks_deduplicated = 0

        logger.info(f"Starting ingest of {file_name} (declared size: {total_size if total_size is not None else 'unknown'})")
        self._check_cancelled(cancel_event, file_name)

        try:
            async for block in split_blocks_async(source, self.block_size):
                self._check_cancelled(cancel_event, file_name)

                fingerprint = compute_fingerprint(block)
                inserted = await self.block_store.put_if_absent(fingerprint, block)
                if inserted:
                    blocks_written += 1
                else:
                    blocks_deduplicated += 1

                fingerprints.append(fingerprint)
                bytes_processed += len(block)
                logger.debug(
                    f"Block {len(fingerprints) - 1} of {file_name}: {fingerprint} "
                    f"({len(block)} bytes, {'written' if inserted else 'deduplicated'})"
                )

                denominator = total_size if total_size else bytes_processed
                reporter.report(bytes_processed / denominator)
        except SourceReadError as e:
            logger.error(f"Ingest of {file_name} aborted after {bytes_processed} bytes: {e}")
            raise
        except StorageFaultError as e:
            logger.error(f"Ingest of {file_name} failed to store block {len(fingerprints)}: {e}")
            raise

        if total_size is not None and bytes_processed != total_size:
            logger.error(f"Ingest of {file_name} read {bytes_processed} bytes, expected {total_size}")
            raise SourceReadError(
                f"Source for {file_name} ended after {bytes_processed} of {total_size} bytes"
            )

        self._check_cancelled(cancel_event, file_name)

        record = self.file_repo.create_file(
            file_name=file_name,
            size=bytes_processed,
            block_hashes=fingerprints,
            block_size=self.block_size,
        )
        reporter.report(1.0)

        logger.info(
            f"Ingested {file_name} as {record.file_id}: {bytes_processed} bytes, "
            f"{len(fingerprints)} blocks ({blocks_written} written, {blocks_deduplicated} deduplicated)"
        )
        return IngestResult(
            record=record,
            blocks_written=blocks_written,
            blocks_deduplicated=blocks_deduplicated,
        )

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event], file_name: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Ingest of {file_name} cancelled")
            raise IngestCancelledError(f"Ingest of {file_name} was cancelled")
