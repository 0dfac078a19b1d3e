"""Entry point for the metadata service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.exceptions import (
    BitStoreException,
    BlockNotFoundError,
    CorruptIndexError,
    FileRecordNotFoundError,
    IngestCancelledError,
    InvalidRecordError,
    SourceReadError,
    StorageFaultError,
)
from common.logging_config import setup_logging
from metadataservice.config import METADATA_HOST, METADATA_PORT
from metadataservice.database import init_database
from metadataservice.routes.file_routes import router as file_router
from metadataservice.service_locator import get_block_store

logger = setup_logging('metadataservice')

HTTP_499_CLIENT_CLOSED_REQUEST = 499

app = FastAPI(
    title="BitStore Metadata Service",
    description="Content-addressed block file storage",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database on application startup.
    """
    logger.info("Metadata service starting up...")
    init_database()
    logger.info("Database initialized")


@app.on_event("shutdown")
async def shutdown_event():
    await get_block_store().close()
    logger.info("Metadata service stopped")


@app.exception_handler(FileRecordNotFoundError)
async def file_not_found_handler(request: Request, exc: FileRecordNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"File not found error: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "FILE_NOT_FOUND"}
    )


@app.exception_handler(BlockNotFoundError)
async def block_not_found_handler(request: Request, exc: BlockNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Block not found error: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "BLOCK_NOT_FOUND"}
    )


@app.exception_handler(InvalidRecordError)
async def invalid_record_handler(request: Request, exc: InvalidRecordError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Invalid record error: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "INVALID_RECORD"}
    )


@app.exception_handler(CorruptIndexError)
async def corrupt_index_handler(request: Request, exc: CorruptIndexError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Corrupt index error: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "code": "CORRUPT_INDEX"}
    )


@app.exception_handler(SourceReadError)
async def source_read_handler(request: Request, exc: SourceReadError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Source read error: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "SOURCE_READ_ERROR"}
    )


@app.exception_handler(StorageFaultError)
async def storage_fault_handler(request: Request, exc: StorageFaultError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Storage fault error: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "STORAGE_FAULT"}
    )


@app.exception_handler(IngestCancelledError)
async def cancelled_handler(request: Request, exc: IngestCancelledError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Ingest cancelled: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=HTTP_499_CLIENT_CLOSED_REQUEST,
        content={"detail": str(exc), "code": "CANCELLED"}
    )


@app.exception_handler(BitStoreException)
async def bitstore_exception_handler(request: Request, exc: BitStoreException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"BitStore exception: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


app.include_router(file_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "BitStore Metadata Service API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "metadataservice"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies database and block store connectivity.
    """
    from metadataservice.database import get_db_connection

    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1 FROM files LIMIT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    try:
        await get_block_store().exists("0" * 64)
        block_store_status = "ok"
    except Exception as e:
        block_store_status = f"error: {str(e)}"

    ready = db_status == "ok" and block_store_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "block_store": block_store_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "metadataservice.main:app",
        host=METADATA_HOST,
        port=METADATA_PORT
    )


if __name__ == "__main__":
    main()
