"""Tests for metadata service API endpoints."""

import pytest
from fastapi.testclient import TestClient

from metadataservice.main import app
from metadataservice.routes.file_routes import get_file_service
from metadataservice.service_locator import set_block_store
from metadataservice.services.file_service import FileService


@pytest.fixture
def client(test_db, block_store):
    """Create FastAPI test client backed by a temporary database and block directory."""
    set_block_store(block_store)
    app.dependency_overrides[get_file_service] = lambda: FileService(block_store=block_store, block_size=16)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    set_block_store(None)


def _upload(client, name, content):
    return client.post('/api/v1/files/upload', files={'file': (name, content)})


def test_root_endpoint(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['status'] == 'running'


def test_health_and_ready(client):
    assert client.get('/health').json()['status'] == 'healthy'

    response = client.get('/ready')
    assert response.status_code == 200
    assert response.json() == {'ready': True, 'database': 'ok', 'block_store': 'ok'}


def test_request_id_echoed(client):
    response = client.get('/health', headers={'X-Request-ID': 'req-123'})
    assert response.headers['X-Request-ID'] == 'req-123'


def test_config_reports_block_size(client):
    response = client.get('/api/v1/config')
    assert response.status_code == 200
    assert response.json() == {'blockSize': 16}


def test_upload_list_download(client):
    content = b'hello, block store! ' * 5

    response = _upload(client, 'greeting.txt', content)
    assert response.status_code == 201
    record = response.json()
    assert record['fileName'] == 'greeting.txt'
    assert record['size'] == len(content)
    assert len(record['blockHashes']) == 7
    assert record['createdAt']

    listing = client.get('/api/v1/files')
    assert listing.status_code == 200
    assert [f['id'] for f in listing.json()] == [record['id']]

    fetched = client.get(f"/api/v1/files/{record['id']}")
    assert fetched.json() == record

    download = client.get(f"/api/v1/files/download/{record['id']}")
    assert download.status_code == 200
    assert download.content == content
    assert download.headers['Content-Length'] == str(len(content))
    assert 'greeting.txt' in download.headers['Content-Disposition']


def test_empty_upload(client):
    response = _upload(client, 'empty.txt', b'')
    assert response.status_code == 201
    assert response.json()['size'] == 0
    assert response.json()['blockHashes'] == []

    download = client.get(f"/api/v1/files/download/{response.json()['id']}")
    assert download.status_code == 200
    assert download.content == b''


def test_list_in_creation_order(client):
    for name in ['z.txt', 'a.txt', 'm.txt']:
        _upload(client, name, name.encode())

    assert [f['fileName'] for f in client.get('/api/v1/files').json()] == ['z.txt', 'a.txt', 'm.txt']


def test_unicode_file_name(client):
    record = _upload(client, 'résumé.txt', b'cv').json()

    download = client.get(f"/api/v1/files/download/{record['id']}")
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9.txt" in download.headers['Content-Disposition']


def test_unknown_file(client):
    response = client.get('/api/v1/files/does-not-exist')
    assert response.status_code == 404
    assert response.json()['code'] == 'FILE_NOT_FOUND'

    response = client.get('/api/v1/files/download/does-not-exist')
    assert response.status_code == 404
    assert response.json()['code'] == 'FILE_NOT_FOUND'


def test_download_with_missing_block(client, block_store):
    record = _upload(client, 'broken.bin', b'a' * 16 + b'b' * 16).json()
    block_store.block_path(record['blockHashes'][0]).unlink()

    response = client.get(f"/api/v1/files/download/{record['id']}")
    assert response.status_code == 409
    assert response.json()['code'] == 'CORRUPT_INDEX'


def test_upload_requires_file(client):
    response = client.post('/api/v1/files/upload')
    assert response.status_code == 422
