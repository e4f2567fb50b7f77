"""Tests for the Downloader — all external HTTP calls are mocked."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from modules.archive.downloader import Downloader
from modules.archive.errors import DownloadFailed
from shared.config import DEFAULT_USER_AGENT

URL = "https://img.example.com/cat.png"


def _mock_client(mock_client_cls, *, response=None, side_effect=None):
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.get.side_effect = side_effect
    else:
        mock_client.get.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def _response(content: bytes, status_code: int = 200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.raise_for_status = MagicMock()
    return resp


@pytest.mark.asyncio
async def test_fetch_returns_body():
    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        client = _mock_client(mock_client_cls, response=_response(b"imagebytes"))

        data = await Downloader(timeout=12.0).fetch(URL)

    assert data == b"imagebytes"
    client.get.assert_awaited_once()
    assert client.get.call_args.kwargs["headers"]["User-Agent"] == DEFAULT_USER_AGENT
    assert mock_client_cls.call_args.kwargs["timeout"] == 12.0


@pytest.mark.asyncio
async def test_fetch_timeout_override_and_extra_headers():
    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        client = _mock_client(mock_client_cls, response=_response(b"x"))

        await Downloader(timeout=30.0, user_agent="ua/1").fetch(
            URL, timeout=3.0, headers={"Referer": "https://example.com"}
        )

    headers = client.get.call_args.kwargs["headers"]
    assert headers == {"User-Agent": "ua/1", "Referer": "https://example.com"}
    assert mock_client_cls.call_args.kwargs["timeout"] == 3.0


@pytest.mark.asyncio
async def test_empty_body_is_distinct_failure():
    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, response=_response(b""))

        with pytest.raises(DownloadFailed) as excinfo:
            await Downloader().fetch(URL)

    assert excinfo.value.reason == "empty_body"


@pytest.mark.asyncio
async def test_timeout_surfaces_as_download_failed():
    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, side_effect=httpx.ReadTimeout("too slow"))

        with pytest.raises(DownloadFailed) as excinfo:
            await Downloader().fetch(URL)

    assert excinfo.value.reason == "timeout"
    assert isinstance(excinfo.value.__cause__, httpx.TimeoutException)


@pytest.mark.asyncio
async def test_network_error():
    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(DownloadFailed, match="connection refused") as excinfo:
            await Downloader().fetch(URL)

    assert excinfo.value.reason == "network"


@pytest.mark.asyncio
async def test_invalid_url_is_network_failure():
    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        _mock_client(
            mock_client_cls,
            side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"),
        )

        with pytest.raises(DownloadFailed, match="non-printable") as excinfo:
            await Downloader().fetch("https://img.example.com/a\x01b.png")

    assert excinfo.value.reason == "network"
    assert isinstance(excinfo.value.__cause__, httpx.InvalidURL)


@pytest.mark.asyncio
async def test_http_error_status():
    request = httpx.Request("GET", URL)
    response = httpx.Response(404, request=request)
    resp = _response(b"not found", status_code=404)
    resp.raise_for_status.side_effect = httpx.HTTPStatusError(
        "404", request=request, response=response
    )

    with patch("modules.archive.downloader.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, response=resp)

        with pytest.raises(DownloadFailed, match="HTTP 404") as excinfo:
            await Downloader().fetch(URL)

    assert excinfo.value.reason == "http_status"
