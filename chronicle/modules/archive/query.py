"""Query engine: re-derives batches, order and age from directory listings.

Nothing is cached: every call lists the namespace directory again, so a
completed write is visible to the next query.
"""

from __future__ import annotations

import asyncio
import os
import random

import structlog

from modules.archive import codec
from modules.archive.errors import NotFound, Outcome, StorageFailure
from modules.archive.namespaces import NamespaceManager

logger = structlog.get_logger()


def _has_extension(name: str) -> bool:
    return os.path.splitext(name)[1] != ""


class QueryEngine:
    """Read-through queries over one namespace directory at a time."""

    def __init__(self, namespaces: NamespaceManager, rng: random.Random | None = None):
        self.namespaces = namespaces
        self._rng = rng or random.Random()

    async def list_all(self, namespace_id: str) -> Outcome[list[str]]:
        """Every stored key with an extension, in filesystem order."""
        namespace = await self.namespaces.ensure_namespace(namespace_id)
        try:
            names = await asyncio.to_thread(os.listdir, namespace.value)
        except OSError as e:
            logger.error("archive_list_failed", namespace=namespace_id, error=str(e))
            return Outcome([], StorageFailure(f"Cannot read namespace '{namespace_id}': {e}"))
        return Outcome([name for name in names if _has_extension(name)])

    async def find_matching(self, namespace_id: str, pattern: str) -> Outcome[list[str]]:
        """Keys containing ``pattern``, newest first.

        Keys without a timestamp sort by the key itself.
        """
        listing = await self.list_all(namespace_id)
        matches = [key for key in listing.value if pattern in key]
        matches.sort(key=lambda key: (codec.extract_timestamp(key) or key, key), reverse=True)
        return Outcome(matches, listing.error)

    async def find_batch(self, namespace_id: str, batch_id: str) -> Outcome[list[str]]:
        """Keys of one batch in ascending sequence order."""
        listing = await self.list_all(namespace_id)
        prefix = f"{batch_id}_"
        members = [key for key in listing.value if key.startswith(prefix)]
        members.sort(key=lambda key: (codec.extract_sequence(key, batch_id), key))
        return Outcome(members, listing.error)

    def resolve_paths(self, namespace_id: str, keys: list[str]) -> list[str]:
        """Absolute filesystem paths for ``keys``."""
        base = self.namespaces.namespace_path(namespace_id)
        return [str((base / key).resolve()) for key in keys]

    async def random_sample(self, namespace_id: str, count: int = 1) -> Outcome[list[str]]:
        """Up to ``count`` distinct records as absolute paths.

        Shuffles the whole listing and takes a prefix.
        """
        listing = await self.list_all(namespace_id)
        keys = list(listing.value)
        if not keys or count < 1:
            return Outcome([], listing.error)

        count = min(count, len(keys))
        self._rng.shuffle(keys)
        return Outcome(self.resolve_paths(namespace_id, keys[:count]), listing.error)

    async def random_image(self, namespace_id: str) -> str | None:
        sample = await self.random_sample(namespace_id, 1)
        return sample.value[0] if sample.value else None

    async def random_batch_id(self, namespace_id: str) -> Outcome[str | None]:
        """Pick one batch id uniformly among those present.

        When no key starts with a batch id (only ad-hoc saves), a random
        stored key is returned instead.  Callers must check the shape with
        ``codec.is_batch_id`` before treating the value as a batch id.
        """
        listing = await self.list_all(namespace_id)
        keys = listing.value
        if not keys:
            return Outcome(None, listing.error)

        batch_ids = set()
        for key in keys:
            parts = key.split("_")
            if len(parts) >= 2 and codec.is_batch_id(parts[0]):
                batch_ids.add(parts[0])

        if not batch_ids:
            return Outcome(self._rng.choice(keys), listing.error)
        return Outcome(self._rng.choice(sorted(batch_ids)), listing.error)

    async def delete_one(self, namespace_id: str, key: str) -> Outcome[bool]:
        """Remove one stored key.  Returns ``False`` instead of raising."""
        if not key or key != os.path.basename(key) or "\\" in key or key in (".", ".."):
            logger.warning("archive_delete_refused", namespace=namespace_id, key=key)
            return Outcome(False, NotFound(f"Not a stored image name: {key}"))

        namespace = await self.namespaces.ensure_namespace(namespace_id)
        try:
            await asyncio.to_thread(os.remove, namespace.value / key)
        except OSError as e:
            logger.error("archive_delete_failed", namespace=namespace_id, key=key, error=str(e))
            return Outcome(False, StorageFailure(f"Cannot delete {key}: {e}"))

        logger.info("archive_image_deleted", namespace=namespace_id, key=key)
        return Outcome(True)
