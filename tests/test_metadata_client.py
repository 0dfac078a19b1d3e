"""Unit tests for MetadataClient."""

import io

import httpx
import pytest

from cli.metadata_client import MetadataClient, MetadataClientError
from common.hashing import compute_fingerprint

FP = compute_fingerprint(b'content')

RECORD = {
    'id': 'file-123',
    'fileName': 'test.txt',
    'size': 7,
    'blockHashes': [FP],
    'createdAt': '2024-01-01T00:00:00+00:00',
}


@pytest.fixture
def mock_transport_success():
    """Mock transport that returns successful responses."""
    uploads = []

    def handler(request):
        if request.url.path == '/api/v1/files' and request.method == 'GET':
            return httpx.Response(200, json=[RECORD])
        elif request.url.path == '/api/v1/files/file-123':
            return httpx.Response(200, json=RECORD)
        elif request.url.path == '/api/v1/files/upload' and request.method == 'POST':
            uploads.append(request.read())
            return httpx.Response(201, json=RECORD)
        elif request.url.path == '/api/v1/files/download/file-123':
            return httpx.Response(
                200,
                content=b'content',
                headers={'Content-Disposition': 'attachment; filename="test.txt"'}
            )
        elif request.url.path == '/api/v1/config':
            return httpx.Response(200, json={'blockSize': 1048576})

        return httpx.Response(404, json={'detail': 'File missing not found', 'code': 'FILE_NOT_FOUND'})

    transport = httpx.MockTransport(handler)
    transport.uploads = uploads
    return transport


@pytest.fixture
def client_with_mock(temp_config, mock_transport_success):
    """MetadataClient using mock transport."""
    return MetadataClient(temp_config, transport=mock_transport_success)


@pytest.fixture
def no_backoff(monkeypatch):
    async def no_sleep(delay):
        return None
    monkeypatch.setattr("cli.metadata_client.asyncio.sleep", no_sleep)


@pytest.mark.asyncio
async def test_list_files(client_with_mock):
    records = await client_with_mock.list_files()

    assert len(records) == 1
    assert records[0].file_id == 'file-123'
    assert records[0].file_name == 'test.txt'
    assert records[0].block_hashes == (FP,)
    assert records[0].created_at.year == 2024
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_get_file_not_found(client_with_mock):
    with pytest.raises(MetadataClientError) as exc_info:
        await client_with_mock.get_file('missing')

    assert exc_info.value.status_code == 404
    assert exc_info.value.code == 'FILE_NOT_FOUND'
    assert 'not found' in str(exc_info.value)
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_get_config(client_with_mock):
    assert await client_with_mock.get_config() == {'blockSize': 1048576}
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_upload_reports_progress(client_with_mock, mock_transport_success):
    progress = []
    payload = b'x' * 100_000

    record = await client_with_mock.upload_file(
        'big.bin', io.BytesIO(payload), progress_callback=progress.append, total_size=len(payload)
    )

    assert record.file_id == 'file-123'
    assert progress[-1] == 1.0
    assert progress == sorted(progress)
    assert payload in mock_transport_success.uploads[0]
    assert b'filename="big.bin"' in mock_transport_success.uploads[0]
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_upload_is_not_retried(temp_config, no_backoff):
    attempts = []

    def handler(request):
        attempts.append(request.method)
        return httpx.Response(503, json={'detail': 'down', 'code': 'STORAGE_FAULT'})

    client = MetadataClient(temp_config, transport=httpx.MockTransport(handler))
    with pytest.raises(MetadataClientError) as exc_info:
        await client.upload_file('a.txt', io.BytesIO(b'a'), total_size=1)

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == 'STORAGE_FAULT'
    assert attempts == ['POST']
    await client.close()


@pytest.mark.asyncio
async def test_get_retried_on_server_error(temp_config, no_backoff):
    attempts = []

    def handler(request):
        attempts.append(request.method)
        if len(attempts) < 3:
            return httpx.Response(500, json={'detail': 'boom', 'code': 'INTERNAL_ERROR'})
        return httpx.Response(200, json=[])

    client = MetadataClient(temp_config, transport=httpx.MockTransport(handler))
    assert await client.list_files() == []
    assert len(attempts) == 3
    await client.close()


@pytest.mark.asyncio
async def test_connection_refused(temp_config, no_backoff):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = MetadataClient(temp_config, transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionError):
        await client.list_files()
    await client.close()


@pytest.mark.asyncio
async def test_download_to_directory(client_with_mock, tmp_path):
    progress = []
    target_dir = tmp_path / 'out'
    target_dir.mkdir()

    path = await client_with_mock.download_file('file-123', str(target_dir), progress_callback=progress.append)

    assert path == target_dir / 'test.txt'
    assert path.read_bytes() == b'content'
    assert progress[-1] == 1.0
    assert list(target_dir.iterdir()) == [path]
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_download_to_default_dir(client_with_mock, temp_config):
    path = await client_with_mock.download_file('file-123')

    assert path == temp_config.get_download_dir() / 'test.txt'
    assert path.read_bytes() == b'content'
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_download_error_leaves_no_file(client_with_mock, tmp_path):
    target = tmp_path / 'missing.bin'

    with pytest.raises(MetadataClientError):
        await client_with_mock.download_file('missing', str(target))

    assert not target.exists()
    await client_with_mock.close()


@pytest.mark.asyncio
async def test_truncated_download_leaves_no_file(temp_config, tmp_path):
    def handler(request):
        return httpx.Response(
            200,
            content=b'partial',
            headers={'Content-Length': '100', 'Content-Disposition': 'attachment; filename="t.bin"'}
        )

    client = MetadataClient(temp_config, transport=httpx.MockTransport(handler))
    out_dir = tmp_path / 'dl'
    out_dir.mkdir()

    with pytest.raises(MetadataClientError):
        await client.download_file('file-123', str(out_dir))

    assert list(out_dir.iterdir()) == []
    await client.close()


@pytest.mark.asyncio
async def test_filename_from_rfc5987_header(temp_config, tmp_path):
    def handler(request):
        return httpx.Response(
            200,
            content=b'cv',
            headers={'Content-Disposition': "attachment; filename=\"r?sum?.txt\"; filename*=UTF-8''r%C3%A9sum%C3%A9.txt"}
        )

    client = MetadataClient(temp_config, transport=httpx.MockTransport(handler))
    path = await client.download_file('file-1', str(tmp_path))

    assert path.name == 'résumé.txt'
    await client.close()
