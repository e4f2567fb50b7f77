"""Ingestion pipeline: reference in, stored key out."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from urllib.parse import urlparse

import structlog

from modules.archive import codec
from modules.archive.downloader import Downloader
from modules.archive.errors import ArchiveError, InvalidReference, Outcome, StorageFailure
from modules.archive.namespaces import NamespaceManager

logger = structlog.get_logger()


@dataclass
class BatchKey:
    """Composite key of a batch record, minus the extension."""

    batch_id: str
    sequence: int
    label: str
    timestamp: str


@dataclass
class BatchItem:
    sequence: int
    reference: str
    outcome: Outcome[str | None]


@dataclass
class BatchReport:
    """Per-item results of one upload."""

    batch_id: str
    items: list[BatchItem] = field(default_factory=list)

    @property
    def saved_keys(self) -> list[str]:
        return [item.outcome.value for item in self.items if item.outcome.ok]

    @property
    def saved_count(self) -> int:
        return len(self.saved_keys)

    @property
    def total(self) -> int:
        return len(self.items)


def _parse_reference(reference: str) -> str:
    url = codec.clean_reference(reference)
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidReference(f"Invalid image link: {url}") from e
    if not parsed.scheme or not parsed.netloc:
        raise InvalidReference(f"Invalid image link: {url}")
    return url


class IngestionPipeline:
    """Downloads referenced images and writes them into a namespace."""

    def __init__(
        self,
        namespaces: NamespaceManager,
        downloader: Downloader,
        default_label: str = "archived",
    ):
        self.namespaces = namespaces
        self.downloader = downloader
        self.default_label = default_label

    async def save_from_reference(
        self,
        reference: str,
        namespace_id: str,
        custom_key: BatchKey | str | None = None,
    ) -> Outcome[str | None]:
        """Fetch ``reference`` and store it under ``namespace_id``.

        ``custom_key`` selects the key form: a ``BatchKey`` gives the batch
        form, a string or ``None`` the ad-hoc form.  Never raises; the
        caller inspects the returned ``Outcome``.  An existing file with
        the same key is overwritten.
        """
        try:
            url = _parse_reference(reference)
            data = await self.downloader.fetch(url)

            ext = codec.extension_from_url(url) or codec.DEFAULT_EXTENSION
            if isinstance(custom_key, BatchKey):
                key = codec.build_batch_key(
                    custom_key.batch_id,
                    custom_key.sequence,
                    custom_key.label,
                    custom_key.timestamp,
                    ext,
                )
            else:
                key = codec.build_ad_hoc_key(custom_key, codec.generate_timestamp(), ext)
            key = codec.sanitize_name(key)

            namespace = await self.namespaces.ensure_namespace(namespace_id)
            path = namespace.value / key
            try:
                await asyncio.to_thread(path.write_bytes, data)
            except OSError as e:
                raise StorageFailure(f"Cannot write {key}: {e}") from e
        except ArchiveError as e:
            logger.error(
                "archive_save_failed",
                namespace=namespace_id,
                reference=reference,
                error=str(e),
            )
            return Outcome(None, e)
        except Exception as e:
            logger.error(
                "archive_save_failed",
                namespace=namespace_id,
                reference=reference,
                error=str(e),
                exc_info=True,
            )
            return Outcome(None, ArchiveError(str(e)))

        logger.info("archive_image_saved", namespace=namespace_id, key=key, size=len(data))
        return Outcome(key)

    async def save_batch(
        self,
        references: list[str],
        namespace_id: str,
        label: str | None = None,
    ) -> BatchReport:
        """Store ``references`` as one batch, strictly one after another.

        Sequence numbers follow the order of ``references`` starting at 1.
        A failed item is recorded and the rest still run; earlier
        successes are kept.
        """
        label = codec.sanitize_name(label or self.default_label)
        report = BatchReport(batch_id=codec.generate_batch_id())

        for sequence, reference in enumerate(references, start=1):
            key = BatchKey(
                batch_id=report.batch_id,
                sequence=sequence,
                label=label,
                timestamp=codec.generate_timestamp(),
            )
            outcome = await self.save_from_reference(reference, namespace_id, key)
            report.items.append(BatchItem(sequence=sequence, reference=reference, outcome=outcome))

        logger.info(
            "archive_batch_saved",
            namespace=namespace_id,
            batch_id=report.batch_id,
            saved=report.saved_count,
            total=report.total,
        )
        return report
