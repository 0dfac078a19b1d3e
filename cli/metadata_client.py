"""HTTP client for communicating with the metadata service."""

import asyncio
import os
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import unquote

import httpx

from cli.config import Config
from cli.utils import ProgressReader
from common.logging_config import get_logger
from common.types import Fingerprint, FileRecord

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

ProgressCallback = Callable[[float], None]


class MetadataClientError(Exception):
    """Raised when the metadata service rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def record_from_json(data: dict) -> FileRecord:
    """Build a FileRecord from the service's JSON representation."""
    created_at = data.get('createdAt')
    return FileRecord(
        file_id=data['id'],
        file_name=data['fileName'],
        size=data['size'],
        block_hashes=tuple(Fingerprint(fp) for fp in data.get('blockHashes', [])),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


class MetadataClient:
    """Async HTTP client for the metadata service API with retry logic and error handling."""

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize metadata client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests)
        """
        self.config = config
        self.session = httpx.AsyncClient(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport
        )
        self.request_id = None
        logger.info(f"Initialized MetadataClient [base_url={config.get_base_url()}]")

    async def __aenter__(self) -> 'MetadataClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _calculate_upload_timeout(self, file_size: Optional[int]) -> float:
        """
        Calculate timeout for upload based on file size.

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        base_timeout = float(self.config.get_timeout())
        if not file_size:
            return base_timeout
        return base_timeout + (file_size / (1024 * 1024)) * 0.1

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make an idempotent HTTP request with retry logic on 5xx errors and network failures.

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        headers = dict(kwargs.pop('headers', None) or {})
        headers['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, headers=headers, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to metadata service. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'FILE_NOT_FOUND': 'File not found on server.',
            'BLOCK_NOT_FOUND': 'A block of this file is missing on the server.',
            'INVALID_RECORD': 'The server rejected the file metadata.',
            'CORRUPT_INDEX': 'The stored file is damaged (missing block or size mismatch).',
            'SOURCE_READ_ERROR': 'The upload stream was interrupted.',
            'STORAGE_FAULT': 'Block storage is currently unavailable. Please try again later.',
            'CANCELLED': 'The upload was cancelled.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            409: 'Conflict',
            413: 'File too large',
            422: 'Invalid request',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _raise_for_error(self, response: httpx.Response, expected: int = 200) -> None:
        if response.status_code != expected:
            code = None
            try:
                code = response.json().get('code')
            except ValueError:
                pass
            raise MetadataClientError(self._format_error(response), response.status_code, code)

    async def list_files(self) -> List[FileRecord]:
        """
        List stored files in creation order.
        """
        response = await self._request_with_retry('GET', f'{API_PREFIX}/files')
        self._raise_for_error(response)
        return [record_from_json(item) for item in response.json()]

    async def get_file(self, file_id: str) -> FileRecord:
        response = await self._request_with_retry('GET', f'{API_PREFIX}/files/{file_id}')
        self._raise_for_error(response)
        return record_from_json(response.json())

    async def get_config(self) -> dict:
        response = await self._request_with_retry('GET', f'{API_PREFIX}/config')
        self._raise_for_error(response)
        return response.json()

    async def upload_file(
        self,
        file_name: str,
        stream,
        progress_callback: Optional[ProgressCallback] = None,
        total_size: Optional[int] = None
    ) -> FileRecord:
        """
        Upload one file. Not retried: a repeated upload would create a second record.

        Args:
            file_name: Name stored with the file
            stream: Readable binary stream
            progress_callback: Receives the fraction of bytes sent (0..1)
            total_size: Stream length, if known

        Returns:
            The created FileRecord
        """
        reader = ProgressReader(stream, total_size, progress_callback)
        files = {'file': (file_name, reader, 'application/octet-stream')}
        headers = {'X-Request-ID': str(uuid.uuid4())}

        logger.info(f"Uploading {file_name} ({total_size if total_size is not None else 'unknown'} bytes)")
        try:
            response = await self.session.post(
                f'{API_PREFIX}/files/upload',
                files=files,
                headers=headers,
                timeout=self._calculate_upload_timeout(total_size)
            )
        except httpx.ConnectError as e:
            raise ConnectionError("Cannot connect to metadata service. Is it running?") from e
        except httpx.TimeoutException as e:
            raise ConnectionError(f"Upload of {file_name} timed out") from e

        self._raise_for_error(response, expected=201)
        record = record_from_json(response.json())
        if progress_callback is not None:
            progress_callback(1.0)
        logger.info(f"Uploaded {file_name} as {record.file_id}")
        return record

    async def download_file(
        self,
        file_id: str,
        output_path: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Path:
        """
        Download a file by id.

        Bytes go to a temporary file next to the destination, which is
        renamed into place only after the full content has arrived. On any
        failure nothing is left at the destination.

        Returns:
            Path of the downloaded file
        """
        url = f'{API_PREFIX}/files/download/{file_id}'
        try:
            async with self.session.stream('GET', url) as response:
                if response.status_code != 200:
                    await response.aread()
                    self._raise_for_error(response)

                filename = self._filename_from_headers(response.headers) or file_id
                output_file = self._resolve_output_path(output_path, filename)
                total_size = int(response.headers.get('Content-Length', 0))

                tmp_file = output_file.with_name(f".{output_file.name}.part")
                downloaded = 0
                try:
                    with open(tmp_file, 'wb') as f:
                        async for chunk in response.aiter_bytes():
                            f.write(chunk)
                            downloaded += len(chunk)
                            if progress_callback is not None and total_size > 0:
                                progress_callback(min(downloaded / total_size, 1.0))

                    if downloaded != total_size:
                        raise MetadataClientError(
                            f"Download of {file_id} incomplete: {downloaded} of {total_size} bytes"
                        )
                    os.replace(tmp_file, output_file)
                except BaseException:
                    tmp_file.unlink(missing_ok=True)
                    raise
        except httpx.ConnectError as e:
            raise ConnectionError("Cannot connect to metadata service. Is it running?") from e
        except httpx.TimeoutException as e:
            raise ConnectionError("Request timed out. Server may be overloaded.") from e
        except httpx.HTTPError as e:
            raise MetadataClientError(f"Download of {file_id} failed: {e}") from e

        if progress_callback is not None:
            progress_callback(1.0)
        logger.info(f"Downloaded {file_id} to {output_file} ({downloaded} bytes)")
        return output_file

    @staticmethod
    def _filename_from_headers(headers: httpx.Headers) -> Optional[str]:
        disposition = headers.get('Content-Disposition', '')
        match = re.search(r"filename\*=UTF-8''([^;]+)", disposition)
        if match:
            return os.path.basename(unquote(match.group(1)))
        match = re.search(r'filename="([^"]*)"', disposition)
        if match and match.group(1):
            return os.path.basename(match.group(1))
        return None

    def _resolve_output_path(self, output_path: Optional[str], filename: str) -> Path:
        if output_path:
            output_file = Path(output_path)
            if output_file.is_dir():
                output_file = output_file / filename
        else:
            output_file = self.config.get_download_dir() / filename
        output_file.parent.mkdir(parents=True, exist_ok=True)
        return output_file

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
