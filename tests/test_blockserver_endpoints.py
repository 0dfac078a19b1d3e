"""Tests for block server API endpoints."""

import pytest
from fastapi.testclient import TestClient

from blockserver.main import app, get_block_store
from common.hashing import compute_fingerprint


@pytest.fixture
def client(block_store):
    """Create FastAPI test client with a temporary block directory."""
    app.dependency_overrides[get_block_store] = lambda: block_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


def test_put_get_head(client):
    data = b'block bytes'
    fp = compute_fingerprint(data)

    response = client.put(f'/blocks/{fp}', content=data)
    assert response.status_code == 201
    assert response.json() == {'fingerprint': fp, 'inserted': True, 'size': len(data)}

    response = client.put(f'/blocks/{fp}', content=data)
    assert response.status_code == 200
    assert response.json()['inserted'] is False

    response = client.get(f'/blocks/{fp}')
    assert response.status_code == 200
    assert response.content == data

    response = client.head(f'/blocks/{fp}')
    assert response.status_code == 200
    assert response.headers['X-Block-Size'] == str(len(data))


def test_list_blocks(client):
    fps = []
    for data in [b'one', b'two']:
        fps.append(compute_fingerprint(data))
        client.put(f'/blocks/{fps[-1]}', content=data)

    response = client.get('/blocks')
    assert response.json() == {'fingerprints': sorted(fps), 'count': 2}


def test_missing_block(client):
    fp = compute_fingerprint(b'absent')

    response = client.get(f'/blocks/{fp}')
    assert response.status_code == 404
    assert response.json()['code'] == 'BLOCK_NOT_FOUND'

    assert client.head(f'/blocks/{fp}').status_code == 404


def test_mismatched_block_rejected(client):
    fp = compute_fingerprint(b'expected')

    response = client.put(f'/blocks/{fp}', content=b'other')
    assert response.status_code == 400
    assert response.json()['code'] == 'INVALID_BLOCK'


def test_malformed_fingerprint(client):
    response = client.get('/blocks/not-a-fingerprint')
    assert response.status_code == 400
