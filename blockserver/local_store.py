"""Manages physical block files on disk: content-addressed read/write."""

import asyncio
import os
import tempfile
import weakref
from pathlib import Path
from typing import List, Union

from blockserver.block_store import BlockStore
from common.constants import BLOCK_FILE_SUFFIX
from common.exceptions import BlockNotFoundError, StorageFaultError
from common.hashing import is_valid_fingerprint, verify_fingerprint
from common.logging_config import get_logger
from common.types import Fingerprint

logger = get_logger(__name__)


class LocalBlockStore(BlockStore):
    """
    Block store backed by a local directory.

    Blocks live at <root>/<fp[:2]>/<fp>.blk. A block is first written to a
    temp file in the same directory and then hard-linked into place, so
    readers never see a partially written block and only one of several
    concurrent writers (in any process) creates the final file.
    """

    def __init__(self, root: Union[str, Path], verify_writes: bool = True):
        """
        Args:
            root: Directory holding the blocks (created on demand)
            verify_writes: Reject data whose digest differs from the fingerprint
        """
        self.root = Path(root)
        self.verify_writes = verify_writes
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def block_path(self, fingerprint: Fingerprint) -> Path:
        """
        Get file path for a block.

        Args:
            fingerprint: Fingerprint of the block

        Returns:
            Path object for block file
        """
        return self.root / fingerprint[:2] / f"{fingerprint}{BLOCK_FILE_SUFFIX}"

    def _check_fingerprint(self, fingerprint: str) -> None:
        if not is_valid_fingerprint(fingerprint):
            raise ValueError(f"Malformed fingerprint: {fingerprint!r}")

    def _lock_for(self, fingerprint: str) -> asyncio.Lock:
        lock = self._locks.get(fingerprint)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[fingerprint] = lock
        return lock

    async def exists(self, fingerprint: Fingerprint) -> bool:
        self._check_fingerprint(fingerprint)
        return await asyncio.to_thread(self.block_path(fingerprint).is_file)

    async def put_if_absent(self, fingerprint: Fingerprint, data: bytes) -> bool:
        self._check_fingerprint(fingerprint)
        if self.verify_writes and not verify_fingerprint(data, fingerprint):
            raise ValueError(f"Block data does not match fingerprint {fingerprint}")

        lock = self._lock_for(fingerprint)
        async with lock:
            try:
                inserted = await asyncio.to_thread(self._write_block, fingerprint, data)
            except OSError as e:
                logger.error(f"Failed to write block {fingerprint}: {e}", exc_info=True)
                raise StorageFaultError(f"Failed to write block {fingerprint}: {e}") from e

        if inserted:
            logger.debug(f"Stored block {fingerprint} ({len(data)} bytes)")
        else:
            logger.debug(f"Block {fingerprint} already present, skipping write")
        return inserted

    def _write_block(self, fingerprint: Fingerprint, data: bytes) -> bool:
        path = self.block_path(fingerprint)
        if path.exists():
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{fingerprint[:8]}-", suffix=".tmp")
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                return False
            return True
        finally:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass

    async def get(self, fingerprint: Fingerprint) -> bytes:
        self._check_fingerprint(fingerprint)
        path = self.block_path(fingerprint)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise BlockNotFoundError(f"Block {fingerprint} not found") from e
        except OSError as e:
            logger.error(f"Failed to read block {fingerprint}: {e}", exc_info=True)
            raise StorageFaultError(f"Failed to read block {fingerprint}: {e}") from e

    async def get_size(self, fingerprint: Fingerprint) -> int:
        self._check_fingerprint(fingerprint)
        path = self.block_path(fingerprint)
        try:
            stat = await asyncio.to_thread(path.stat)
        except FileNotFoundError as e:
            raise BlockNotFoundError(f"Block {fingerprint} not found") from e
        except OSError as e:
            raise StorageFaultError(f"Failed to stat block {fingerprint}: {e}") from e
        return stat.st_size

    async def list_fingerprints(self) -> List[Fingerprint]:
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> List[Fingerprint]:
        if not self.root.exists():
            return []
        return sorted(
            Fingerprint(path.stem)
            for path in self.root.glob(f"*/*{BLOCK_FILE_SUFFIX}")
        )
