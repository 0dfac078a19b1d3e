"""Configuration settings for the block server."""

import os
from common.constants import DEFAULT_BLOCK_STORAGE_PATH, BLOCKSERVER_PORT as DEFAULT_BLOCKSERVER_PORT


BLOCK_STORAGE_PATH = os.environ.get("BITSTORE_BLOCK_STORAGE_PATH", DEFAULT_BLOCK_STORAGE_PATH)

BLOCKSERVER_HOST = os.environ.get("BITSTORE_BLOCKSERVER_HOST", "0.0.0.0")

BLOCKSERVER_PORT = int(os.environ.get("BITSTORE_BLOCKSERVER_PORT", str(DEFAULT_BLOCKSERVER_PORT)))
