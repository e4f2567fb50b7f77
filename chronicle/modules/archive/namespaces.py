"""Namespace manager, one directory per channel under the archive root."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from modules.archive.errors import Outcome, StorageFailure

logger = structlog.get_logger()


def _safe_component(namespace_id: str) -> str:
    """Keep a namespace id to a single directory level below the root."""
    component = namespace_id.replace("/", "_").replace("\\", "_")
    if component in ("", ".", ".."):
        return "_"
    return component


class NamespaceManager:
    """Resolves namespace ids to directories, creating them on first use."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def namespace_path(self, namespace_id: str) -> Path:
        return self.root / _safe_component(namespace_id)

    async def ensure_root(self) -> None:
        """Create the archive root.  Failures are logged, not raised."""
        try:
            await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error("archive_root_create_failed", root=str(self.root), error=str(e))

    async def ensure_namespace(self, namespace_id: str) -> Outcome[Path]:
        """Return the namespace directory, creating it if needed.

        A failed mkdir doesn't stop the caller: the path comes back anyway
        with the error attached, and the real failure surfaces on the
        following read or write.
        """
        path = self.namespace_path(namespace_id)
        try:
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                "archive_namespace_create_failed",
                namespace=namespace_id,
                path=str(path),
                error=str(e),
            )
            return Outcome(path, StorageFailure(f"Cannot create namespace '{namespace_id}': {e}"))
        return Outcome(path)
