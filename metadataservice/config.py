"""Configuration settings for the metadata service."""

import os
from common.constants import (
    BLOCK_SIZE_BYTES,
    DEFAULT_BLOCK_STORAGE_PATH,
    DEFAULT_DATABASE_PATH,
    METADATA_SERVICE_PORT,
)


DATABASE_PATH = os.environ.get("BITSTORE_DATABASE_PATH", DEFAULT_DATABASE_PATH)

METADATA_HOST = os.environ.get("BITSTORE_METADATA_HOST", "0.0.0.0")

METADATA_PORT = int(os.environ.get("BITSTORE_METADATA_PORT", str(METADATA_SERVICE_PORT)))

BLOCK_SIZE = int(os.environ.get("BITSTORE_BLOCK_SIZE", str(BLOCK_SIZE_BYTES)))

# Unset means blocks are kept in-process under BLOCK_STORAGE_PATH
BLOCK_SERVICE_URL = os.environ.get("BITSTORE_BLOCK_SERVICE_URL") or None

BLOCK_STORAGE_PATH = os.environ.get("BITSTORE_BLOCK_STORAGE_PATH", DEFAULT_BLOCK_STORAGE_PATH)

API_PREFIX = "/api/v1"
