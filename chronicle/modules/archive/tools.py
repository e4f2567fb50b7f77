"""Archive tool implementations.

Each tool works inside the channel the request came from: the
orchestrator injects ``platform_channel_id`` and it becomes the
namespace id.
"""

from __future__ import annotations

import re

import structlog

from modules.archive import codec
from modules.archive.downloader import Downloader
from modules.archive.errors import AmbiguousMatch
from modules.archive.ingestion import IngestionPipeline
from modules.archive.namespaces import NamespaceManager
from modules.archive.query import QueryEngine
from shared.config import Settings

logger = structlog.get_logger()

NO_CHANNEL_ERROR = "Cannot determine the channel; use this command inside a channel."

# Image markup as relayed by the chat bots.
_IMAGE_PATTERNS = [
    re.compile(r'<image\s+url="([^"]+)"[^>]*>'),
    re.compile(r'<img[^>]+src="([^"]+)"'),
    re.compile(r"<ing>([^<]+)</ing>"),
]


def extract_image_urls(content: str | None) -> list[str]:
    """Pull image URLs out of message markup, de-duplicated in order."""
    if not content:
        return []
    urls: list[str] = []
    for pattern in _IMAGE_PATTERNS:
        for raw in pattern.findall(content):
            url = codec.decode_html_entities(raw)
            if url not in urls:
                urls.append(url)
    return urls


class ArchiveTools:
    """Tool implementations for the per-channel image archive."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.namespaces = NamespaceManager(settings.archive_root)
        self.downloader = Downloader(
            timeout=settings.archive_download_timeout,
            user_agent=settings.archive_user_agent,
        )
        self.ingestion = IngestionPipeline(
            self.namespaces,
            self.downloader,
            default_label=settings.archive_default_label,
        )
        self.query = QueryEngine(self.namespaces)

    async def upload_images(
        self,
        image_urls: list[str] | None = None,
        content: str | None = None,
        name: str | None = None,
        platform_channel_id: str | None = None,
    ) -> dict:
        """Archive every image of one message as a single batch."""
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}

        references: list[str] = []
        for url in [*(image_urls or []), *extract_image_urls(content)]:
            if url not in references:
                references.append(url)
        if not references:
            return {"error": "No images found. Attach the images you want to archive."}

        report = await self.ingestion.save_batch(references, platform_channel_id, label=name)

        results = []
        for item in report.items:
            entry = {"sequence": item.sequence, "url": item.reference}
            if item.outcome.ok:
                entry["file_name"] = item.outcome.value
            else:
                entry["error"] = str(item.outcome.error)
            results.append(entry)

        return {
            "batch_id": report.batch_id,
            "saved": report.saved_count,
            "total": report.total,
            "results": results,
        }

    async def save_image(
        self,
        url: str,
        file_name: str | None = None,
        platform_channel_id: str | None = None,
    ) -> dict:
        """Archive a single image outside any batch."""
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}

        outcome = await self.ingestion.save_from_reference(url, platform_channel_id, file_name)
        if not outcome.ok:
            return {"error": str(outcome.error)}
        return {"file_name": outcome.value}

    async def random_batch(
        self,
        batch_only: bool = False,
        platform_channel_id: str | None = None,
    ) -> dict:
        """Show a random batch, or a random image when no batches exist."""
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}

        picked = await self.query.random_batch_id(platform_channel_id)
        if picked.value is None:
            return {"error": "The archive is empty. Upload some images first."}

        # With no batch-shaped keys the query falls back to a plain key.
        if not codec.is_batch_id(picked.value):
            return {
                "batch_id": None,
                "is_batch": False,
                "file_name": picked.value,
                "images": self.query.resolve_paths(platform_channel_id, [picked.value]),
            }

        if batch_only:
            return {"batch_id": picked.value, "is_batch": True}

        members = await self.query.find_batch(platform_channel_id, picked.value)
        if not members.value:
            return {"error": f"Batch {picked.value} could not be displayed."}
        return {
            "batch_id": picked.value,
            "is_batch": True,
            "count": len(members.value),
            "images": self.query.resolve_paths(platform_channel_id, members.value),
        }

    async def show_batch(self, batch_id: str, platform_channel_id: str | None = None) -> dict:
        """Show every image of one batch in sequence order."""
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}

        members = await self.query.find_batch(platform_channel_id, batch_id)
        if not members.value:
            return {"error": f"No images found for batch '{batch_id}'."}
        return {
            "batch_id": batch_id,
            "count": len(members.value),
            "file_names": members.value,
            "images": self.query.resolve_paths(platform_channel_id, members.value),
        }

    async def search_images(
        self,
        keyword: str,
        show: bool = False,
        platform_channel_id: str | None = None,
    ) -> dict:
        """Find images whose name contains ``keyword``, newest first."""
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}

        matches = await self.query.find_matching(platform_channel_id, keyword)
        if not matches.value:
            return {"error": f"No images related to '{keyword}' were found."}

        result: dict = {"count": len(matches.value), "file_names": matches.value}
        if show:
            limit = min(self.settings.archive_search_display_limit, len(matches.value))
            result["images"] = self.query.resolve_paths(platform_channel_id, matches.value[:limit])
            result["truncated"] = len(matches.value) > limit
        return result

    async def random_images(self, count: int = 1, platform_channel_id: str | None = None) -> dict:
        """Sample ``count`` random images without repeats."""
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}
        try:
            count = int(count)
        except (TypeError, ValueError):
            return {"error": f"Invalid count: {count!r}"}

        sample = await self.query.random_sample(platform_channel_id, count)
        if not sample.value:
            return {"error": "The archive is empty. Upload some images first."}
        return {"count": len(sample.value), "images": sample.value}

    async def list_images(self, platform_channel_id: str | None = None) -> dict:
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}

        listing = await self.query.list_all(platform_channel_id)
        return {"count": len(listing.value), "file_names": listing.value}

    async def delete_image(self, file_name: str, platform_channel_id: str | None = None) -> dict:
        """Delete the single image whose name contains ``file_name``.

        Several matches delete nothing; all of them are returned so the
        user can pick a more specific name.
        """
        if not platform_channel_id:
            return {"error": NO_CHANNEL_ERROR}
        if not file_name:
            return {"error": "Name the image to delete."}

        matches = await self.query.find_matching(platform_channel_id, file_name)
        if not matches.value:
            return {"error": f"No image named '{file_name}' in the archive."}
        if len(matches.value) > 1:
            ambiguous = AmbiguousMatch(file_name, matches.value)
            return {"error": f"{ambiguous}. Please be more specific.", "matches": ambiguous.matches}

        target = matches.value[0]
        deleted = await self.query.delete_one(platform_channel_id, target)
        if not deleted.value:
            return {"error": f"Failed to delete {target}.", "file_name": target}
        return {"deleted": True, "file_name": target}
