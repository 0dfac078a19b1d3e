"""Shared pytest fixtures for all tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from blockserver.local_store import LocalBlockStore
from cli.config import Config
from metadataservice.database import init_database
from metadataservice.services.file_service import FileService

SMALL_BLOCK_SIZE = 16


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary test database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("metadataservice.database.DATABASE_PATH", str(db_path))
        monkeypatch.setattr("metadataservice.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


@pytest.fixture
def block_store(tmp_path):
    """
    Block store rooted in a temporary directory.
    """
    return LocalBlockStore(tmp_path / 'blocks')


@pytest.fixture
def file_service(test_db, block_store):
    """
    In-process file service with a small block size so tests exercise
    multi-block files without large payloads.
    """
    return FileService(block_store=block_store, block_size=SMALL_BLOCK_SIZE)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .bitstore directory
    """
    config_dir = tmp_path / '.bitstore'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, tmp_path):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['download_dir'] = str(tmp_path / 'downloads')
    return config


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample binary file
    """
    file_path = tmp_path / 'test.bin'
    file_path.write_bytes(b'Sample content for testing' * 3)
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing batch uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.bin'
        file_path.write_bytes(f'Sample content {i} '.encode() * 4)
        files.append(file_path)
    return files
