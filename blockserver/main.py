"""Entry point for the block server.
Serves content-addressed blocks from a local directory over HTTP.
"""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, Response

from blockserver.config import BLOCK_STORAGE_PATH, BLOCKSERVER_HOST, BLOCKSERVER_PORT
from blockserver.local_store import LocalBlockStore
from common.exceptions import BitStoreException, BlockNotFoundError, StorageFaultError
from common.logging_config import setup_logging

logger = setup_logging('blockserver')

app = FastAPI(
    title="BitStore Block Server",
    description="Content-addressed block storage",
    version="1.0.0"
)

_block_store: Optional[LocalBlockStore] = None


def get_block_store() -> LocalBlockStore:
    """Return the process-wide block store, creating it on first use."""
    global _block_store
    if _block_store is None:
        _block_store = LocalBlockStore(BLOCK_STORAGE_PATH)
        logger.info(f"Block store initialized at {BLOCK_STORAGE_PATH}")
    return _block_store


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    logger.debug(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(BlockNotFoundError)
async def block_not_found_handler(request: Request, exc: BlockNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Block not found: {exc} [request_id={request_id}]")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "BLOCK_NOT_FOUND"}
    )


@app.exception_handler(ValueError)
async def invalid_block_handler(request: Request, exc: ValueError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Invalid block request: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "INVALID_BLOCK"}
    )


@app.exception_handler(StorageFaultError)
async def storage_fault_handler(request: Request, exc: StorageFaultError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Storage fault: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "STORAGE_FAULT"}
    )


@app.exception_handler(BitStoreException)
async def bitstore_exception_handler(request: Request, exc: BitStoreException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"BitStore exception: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


@app.put("/blocks/{fingerprint}")
async def put_block(
    fingerprint: str,
    request: Request,
    block_store: LocalBlockStore = Depends(get_block_store)
):
    """
    Store a block unless it is already present.

    Returns 201 when the block was written, 200 when it already existed.
    """
    data = await request.body()
    inserted = await block_store.put_if_absent(fingerprint, data)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if inserted else status.HTTP_200_OK,
        content={"fingerprint": fingerprint, "inserted": inserted, "size": len(data)}
    )


@app.get("/blocks/{fingerprint}")
async def get_block(fingerprint: str, block_store: LocalBlockStore = Depends(get_block_store)):
    data = await block_store.get(fingerprint)
    return Response(content=data, media_type="application/octet-stream")


@app.head("/blocks/{fingerprint}")
async def head_block(fingerprint: str, block_store: LocalBlockStore = Depends(get_block_store)):
    size = await block_store.get_size(fingerprint)
    return Response(status_code=status.HTTP_200_OK, headers={"X-Block-Size": str(size)})


@app.get("/blocks")
async def list_blocks(block_store: LocalBlockStore = Depends(get_block_store)):
    fingerprints = await block_store.list_fingerprints()
    return {"fingerprints": fingerprints, "count": len(fingerprints)}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    """
    return {"status": "healthy", "service": "blockserver"}


def main() -> None:
    """
    Start the block server with uvicorn.
    """
    uvicorn.run(
        "blockserver.main:app",
        host=BLOCKSERVER_HOST,
        port=BLOCKSERVER_PORT
    )


if __name__ == "__main__":
    main()
