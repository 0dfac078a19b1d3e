"""Exception classes shared by the block store, file index and pipelines."""


class BitStoreException(Exception):
    """
    Base exception class for all BitStore errors.
    """
    pass


class NotFoundError(BitStoreException):
    """
    Raised when a requested file record or block does not exist.
    """
    pass


class FileRecordNotFoundError(NotFoundError):
    """
    Raised when no file record exists for the requested id.
    """
    pass


class BlockNotFoundError(NotFoundError):
    """
    Raised when the block store has no block for a fingerprint.
    """
    pass


class InvalidRecordError(BitStoreException):
    """
    Raised when file record metadata is inconsistent at creation time.
    """
    pass


class CorruptIndexError(BitStoreException):
    """
    Raised when a file record references a missing or damaged block,
    or when the reconstructed byte count disagrees with the record size.
    """
    pass


class StorageFaultError(BitStoreException):
    """
    Raised when the underlying persistence layer fails on read or write.
    """
    pass


class SourceReadError(BitStoreException):
    """
    Raised when the byte stream being ingested fails before completion.
    """
    pass


class IngestCancelledError(BitStoreException):
    """
    Raised when the caller aborts an in-flight ingest.
    """
    pass
