"""Service locator for the block store backend."""

from typing import Optional

from blockserver.block_store import BlockStore
from common.logging_config import get_logger

logger = get_logger(__name__)

_block_store: Optional[BlockStore] = None


def create_block_store() -> BlockStore:
    """
    Build the configured backend: the remote block server when
    BITSTORE_BLOCK_SERVICE_URL is set, a local directory otherwise.
    """
    from metadataservice.config import BLOCK_SERVICE_URL, BLOCK_STORAGE_PATH

    if BLOCK_SERVICE_URL:
        from metadataservice.blockserver_client import RemoteBlockStore
        logger.info(f"Using remote block store at {BLOCK_SERVICE_URL}")
        return RemoteBlockStore(BLOCK_SERVICE_URL)

    from blockserver.local_store import LocalBlockStore
    logger.info(f"Using local block store at {BLOCK_STORAGE_PATH}")
    return LocalBlockStore(BLOCK_STORAGE_PATH)


def set_block_store(store: Optional[BlockStore]) -> None:
    """Set global block store instance"""
    global _block_store
    _block_store = store


def get_block_store() -> BlockStore:
    """Get global block store instance, creating it on first use"""
    global _block_store
    if _block_store is None:
        _block_store = create_block_store()
    return _block_store
