"""Shared data type definitions (Fingerprint, FileRecord)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import NewType, Optional, Tuple

Fingerprint = NewType("Fingerprint", str)


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata for a stored file: the ordered fingerprints of its blocks.

    block_hashes follows byte offset order and may repeat a fingerprint
    when the file contains the same block more than once.
    """
    file_id: str
    file_name: str
    size: int
    block_hashes: Tuple[Fingerprint, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None

    @property
    def block_count(self) -> int:
        return len(self.block_hashes)

