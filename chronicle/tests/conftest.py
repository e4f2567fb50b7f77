"""Shared test fixtures for the archive test suite.

The archive has no database: every fixture works on a real directory
under ``tmp_path``.  Only the HTTP download is mocked.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from modules.archive.downloader import Downloader
from modules.archive.ingestion import IngestionPipeline
from modules.archive.namespaces import NamespaceManager
from modules.archive.query import QueryEngine
from shared.config import Settings

CHANNEL_ID = "123456789"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
def archive_root(tmp_path) -> Path:
    return tmp_path / "archive"


@pytest.fixture
def archive_settings(archive_root) -> Settings:
    """Settings pointing at a throwaway archive root."""
    return Settings(
        archive_root=str(archive_root),
        archive_download_timeout=5.0,
        service_auth_token="",
    )


@pytest.fixture
def namespaces(archive_root) -> NamespaceManager:
    return NamespaceManager(archive_root)


@pytest.fixture
def query(namespaces) -> QueryEngine:
    return QueryEngine(namespaces)


@pytest.fixture
def make_record(archive_root):
    """Factory writing a stored key straight into a channel directory.

    Bypasses ingestion so tests control file names exactly.
    """

    def _make(key: str, channel_id: str = CHANNEL_ID, data: bytes = PNG_BYTES) -> Path:
        channel = archive_root / channel_id
        channel.mkdir(parents=True, exist_ok=True)
        path = channel / key
        path.write_bytes(data)
        return path

    return _make


# ---------------------------------------------------------------------------
# Download mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_downloader():
    """Downloader whose ``fetch`` returns PNG bytes without touching the network."""
    downloader = Downloader(timeout=5.0)
    downloader.fetch = AsyncMock(return_value=PNG_BYTES)
    return downloader


@pytest.fixture
def ingestion(namespaces, mock_downloader) -> IngestionPipeline:
    return IngestionPipeline(namespaces, mock_downloader, default_label="archived")
