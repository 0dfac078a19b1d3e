"""HTTP client for the block server, exposed as a BlockStore backend."""

from typing import List, Optional

import httpx

from blockserver.block_store import BlockStore
from common.constants import BLOCKSERVER_TIMEOUT_SECONDS
from common.exceptions import BlockNotFoundError, StorageFaultError
from common.logging_config import get_logger
from common.types import Fingerprint

logger = get_logger(__name__)


class RemoteBlockStore(BlockStore):
    """
    BlockStore that talks to a block server over HTTP.

    Transport failures surface as StorageFaultError without a retry; a lost
    PUT response cannot tell whether this call wrote the block.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = BLOCKSERVER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            base_url: Block server URL, e.g. http://blockserver:8081
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip('/')
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)
        logger.info(f"Initialized RemoteBlockStore [base_url={self.base_url}]")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Send one request to the block server.

        Raises:
            StorageFaultError: If the server is unreachable, times out or answers 5xx
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(f"Block server unreachable: {method} {path} error={type(e).__name__}")
            raise StorageFaultError(f"Block server unavailable at {self.base_url}: {e}") from e
        except httpx.HTTPError as e:
            raise StorageFaultError(f"Block server request failed: {method} {path}: {e}") from e

        if response.status_code >= 500:
            raise StorageFaultError(
                f"Block server error: {method} {path} status={response.status_code}"
            )
        return response

    async def exists(self, fingerprint: Fingerprint) -> bool:
        response = await self._request('HEAD', f'/blocks/{fingerprint}')
        if response.status_code == 404:
            return False
        self._raise_for_client_error(response, fingerprint)
        return True

    async def put_if_absent(self, fingerprint: Fingerprint, data: bytes) -> bool:
        response = await self._request(
            'PUT',
            f'/blocks/{fingerprint}',
            content=data,
            headers={'Content-Type': 'application/octet-stream'}
        )
        if response.status_code == 400:
            raise ValueError(self._error_detail(response))
        self._raise_for_client_error(response, fingerprint)
        return bool(response.json()['inserted'])

    async def get(self, fingerprint: Fingerprint) -> bytes:
        response = await self._request('GET', f'/blocks/{fingerprint}')
        if response.status_code == 404:
            raise BlockNotFoundError(f"Block {fingerprint} not found")
        self._raise_for_client_error(response, fingerprint)
        return response.content

    async def get_size(self, fingerprint: Fingerprint) -> int:
        response = await self._request('HEAD', f'/blocks/{fingerprint}')
        if response.status_code == 404:
            raise BlockNotFoundError(f"Block {fingerprint} not found")
        self._raise_for_client_error(response, fingerprint)
        return int(response.headers['X-Block-Size'])

    async def list_fingerprints(self) -> List[Fingerprint]:
        response = await self._request('GET', '/blocks')
        self._raise_for_client_error(response, None)
        return [Fingerprint(fp) for fp in response.json()['fingerprints']]

    def _raise_for_client_error(self, response: httpx.Response, fingerprint: Optional[str]) -> None:
        if response.status_code >= 400:
            raise StorageFaultError(
                f"Unexpected block server response for {fingerprint or 'block listing'}: "
                f"status={response.status_code} detail={self._error_detail(response)}"
            )

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            return response.json().get('detail', response.text)
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
