"""HTTP downloader for image references."""

from __future__ import annotations

import httpx
import structlog

from modules.archive.errors import DownloadFailed
from shared.config import DEFAULT_USER_AGENT

logger = structlog.get_logger()


class Downloader:
    """Fetches raw bytes with a bounded timeout and a browser User-Agent."""

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT):
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(
        self,
        url: str,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Download ``url`` and return the body.

        Raises:
            DownloadFailed: on timeout, transport error, non-2xx status or
                an empty body.  ``reason`` tells these apart.
        """
        request_headers = {"User-Agent": self.user_agent, **(headers or {})}
        try:
            async with httpx.AsyncClient(
                timeout=timeout or self.timeout, follow_redirects=True
            ) as client:
                resp = await client.get(url, headers=request_headers)
                resp.raise_for_status()
                content = resp.content
        except httpx.TimeoutException as e:
            raise DownloadFailed(f"Download timed out: {url}", reason="timeout") from e
        except httpx.HTTPStatusError as e:
            raise DownloadFailed(
                f"Download failed with HTTP {e.response.status_code}: {url}",
                reason="http_status",
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL is not an HTTPError subclass
            raise DownloadFailed(f"Download failed: {e}", reason="network") from e

        if not content:
            raise DownloadFailed(f"Image content is empty: {url}", reason="empty_body")

        logger.debug("archive_download_complete", url=url, size=len(content))
        return content
