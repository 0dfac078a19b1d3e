"""Content-addressed block store interface shared by all backends."""

from abc import ABC, abstractmethod
from typing import List

from common.types import Fingerprint


class BlockStore(ABC):
    """
    Content-addressed key -> bytes store.

    Keys are fingerprints of the stored bytes, so a block is written at most
    once no matter how many file records reference it. Blocks are immutable:
    there is no update or delete.
    """

    @abstractmethod
    async def exists(self, fingerprint: Fingerprint) -> bool:
        """Return True if a block is stored under fingerprint."""

    @abstractmethod
    async def put_if_absent(self, fingerprint: Fingerprint, data: bytes) -> bool:
        """
        Store data under fingerprint unless a block is already present.

        Concurrent calls for the same fingerprint persist the bytes exactly
        once; every other caller observes False.

        Returns:
            True if this call wrote the block, False if it already existed

        Raises:
            StorageFaultError: If the backend fails to persist the block
        """

    @abstractmethod
    async def get(self, fingerprint: Fingerprint) -> bytes:
        """
        Read a block.

        Raises:
            BlockNotFoundError: If no block is stored under fingerprint
            StorageFaultError: If the backend fails to read the block
        """

    @abstractmethod
    async def get_size(self, fingerprint: Fingerprint) -> int:
        """
        Return the byte length of a stored block.

        Raises:
            BlockNotFoundError: If no block is stored under fingerprint
        """

    @abstractmethod
    async def list_fingerprints(self) -> List[Fingerprint]:
        """Return the fingerprints of all stored blocks, sorted."""

    async def close(self) -> None:
        """Release backend resources."""
