"""Project-wide constants (e.g., BLOCK_SIZE, default ports)."""

BLOCK_SIZE_BYTES: int = 1024 * 1024  # 1024 KB default block size

FINGERPRINT_HEX_LENGTH: int = 64

BLOCK_FILE_SUFFIX: str = ".blk"

DEFAULT_BLOCK_STORAGE_PATH: str = "/app/data/blocks"
DEFAULT_DATABASE_PATH: str = "/app/data/metadata.db"

METADATA_SERVICE_PORT: int = 8080
BLOCKSERVER_PORT: int = 8081

BLOCKSERVER_TIMEOUT_SECONDS: float = 30.0
