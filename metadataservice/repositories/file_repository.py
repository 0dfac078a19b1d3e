"""File record repository (the File Index) for database operations."""

import math
import sqlite3
from datetime import datetime
from typing import List, Optional, Sequence

from common.exceptions import FileRecordNotFoundError, InvalidRecordError, StorageFaultError
from common.hashing import is_valid_fingerprint
from common.logging_config import get_logger
from common.types import Fingerprint, FileRecord
from metadataservice.database import get_db_connection
from metadataservice.utils import generate_uuid, utc_now

logger = get_logger(__name__)


def validate_record(
    file_name: str,
    size: int,
    block_hashes: Sequence[str],
    block_size: Optional[int] = None
) -> None:
    """
    Check that record metadata is self-consistent.

    When block_size is given the number of fingerprints must be exactly the
    number of fixed-size blocks needed to hold size bytes.

    Raises:
        InvalidRecordError: If the metadata cannot describe a stored file
    """
    if not file_name:
        raise InvalidRecordError("File name must not be empty")
    if size < 0:
        raise InvalidRecordError(f"File size must not be negative, got {size}")
    if size > 0 and not block_hashes:
        raise InvalidRecordError(f"File of {size} bytes has no blocks")
    if size == 0 and block_hashes:
        raise InvalidRecordError(f"Empty file cannot reference {len(block_hashes)} blocks")

    for fingerprint in block_hashes:
        if not is_valid_fingerprint(fingerprint):
            raise InvalidRecordError(f"Malformed block fingerprint: {fingerprint!r}")

    if block_size is not None:
        expected_blocks = math.ceil(size / block_size)
        if expected_blocks != len(block_hashes):
            raise InvalidRecordError(
                f"File of {size} bytes needs {expected_blocks} blocks of {block_size} bytes, "
                f"got {len(block_hashes)}"
            )


class FileRepository:
    @staticmethod
    def create_file(
        file_name: str,
        size: int,
        block_hashes: Sequence[str],
        block_size: Optional[int] = None,
        created_at: Optional[datetime] = None
    ) -> FileRecord:
        """
        Insert a file record and its ordered block list in one transaction.

        Either the whole record becomes visible or nothing does.
        """
        validate_record(file_name, size, block_hashes, block_size)

        file_id = generate_uuid()
        created_at = created_at or utc_now()
        hashes = tuple(Fingerprint(fp) for fp in block_hashes)

        logger.debug(f"Creating file record [file_id={file_id}] name={file_name} blocks={len(hashes)}")
        try:
            with get_db_connection() as conn:
                try:
                    cursor = conn.cursor()
                    cursor.execute(
                        """
                        INSERT INTO files (file_id, file_name, size, block_count, created_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (file_id, file_name, size, len(hashes), created_at.isoformat())
                    )
                    cursor.executemany(
                        """
                        INSERT INTO file_blocks (file_id, block_index, fingerprint)
                        VALUES (?, ?, ?)
                        """,
                        [(file_id, index, fp) for index, fp in enumerate(hashes)]
                    )
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except sqlite3.Error as e:
            logger.error(f"Failed to create file record [file_id={file_id}]: {e}", exc_info=True)
            raise StorageFaultError(f"Failed to create file record: {e}") from e

        logger.info(f"Created file record [file_id={file_id}] name={file_name} size={size} blocks={len(hashes)}")
        return FileRecord(
            file_id=file_id,
            file_name=file_name,
            size=size,
            block_hashes=hashes,
            created_at=created_at,
        )

    @staticmethod
    def get_by_id(file_id: str) -> FileRecord:
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT file_id, file_name, size, created_at FROM files WHERE file_id = ?",
                    (file_id,)
                )
                row = cursor.fetchone()

                if row is None:
                    raise FileRecordNotFoundError(f"File {file_id} not found")

                cursor.execute(
                    "SELECT fingerprint FROM file_blocks WHERE file_id = ? ORDER BY block_index",
                    (file_id,)
                )
                hashes = tuple(Fingerprint(r["fingerprint"]) for r in cursor.fetchall())
        except sqlite3.Error as e:
            raise StorageFaultError(f"Failed to read file record {file_id}: {e}") from e

        return FileRecord(
            file_id=row["file_id"],
            file_name=row["file_name"],
            size=row["size"],
            block_hashes=hashes,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def list_files() -> List[FileRecord]:
        """
        Return every file record in creation order (oldest first).
        """
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT file_id, file_name, size, created_at FROM files ORDER BY seq"
                )
                rows = cursor.fetchall()

                cursor.execute(
                    """
                    SELECT fb.file_id, fb.fingerprint
                    FROM file_blocks fb
                    JOIN files f ON f.file_id = fb.file_id
                    ORDER BY f.seq, fb.block_index
                    """
                )
                blocks_by_file = {}
                for r in cursor.fetchall():
                    blocks_by_file.setdefault(r["file_id"], []).append(Fingerprint(r["fingerprint"]))
        except sqlite3.Error as e:
            raise StorageFaultError(f"Failed to list file records: {e}") from e

        return [
            FileRecord(
                file_id=row["file_id"],
                file_name=row["file_name"],
                size=row["size"],
                block_hashes=tuple(blocks_by_file.get(row["file_id"], ())),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]
