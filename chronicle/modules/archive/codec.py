"""Storage key codec. The filename *is* the index.

Batch keys look like ``ABC123_2_label_2024-05-01_12-30-45.png``:

    <batch id>_<sequence>_<label>_<timestamp>.<ext>

Ad-hoc keys are either a caller-supplied name or ``<timestamp>.<ext>``.
Everything here is pure; no function touches the filesystem.
"""

from __future__ import annotations

import re
import secrets
import sys
from datetime import datetime, timezone
from pathlib import PurePosixPath
from urllib.parse import urlparse

DEFAULT_EXTENSION = "jpg"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# Sorts malformed sequence numbers after every real one.
SEQUENCE_SENTINEL = sys.maxsize

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_TIMESTAMP_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}")
_BATCH_ID_PATTERN = re.compile(r"[0-9A-F]{6}")
_LEADING_INT = re.compile(r"\d+")
_MARKUP_TAG = re.compile(r"<[^>]*>")
_ENTITY = re.compile(r"&(?:#(\d+)|#[xX]([0-9a-fA-F]+)|(amp|lt|gt|quot|apos));")

_NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}


def sanitize_name(raw: str) -> str:
    """Replace every character that is illegal in a filename with ``_``."""
    return _ILLEGAL_CHARS.sub("_", raw)


def build_batch_key(
    batch_id: str,
    sequence: int,
    label: str,
    timestamp: str,
    ext: str = DEFAULT_EXTENSION,
) -> str:
    """Join the batch fields with ``_``.

    The extension is only appended when the label doesn't already carry
    one, so ``pic.png`` as a label keeps its own suffix inside the key.
    """
    stem = f"{batch_id}_{sequence}_{label}_{timestamp}"
    if "." in label:
        return stem
    return f"{stem}.{ext}"


def build_ad_hoc_key(custom: str | None, timestamp: str, ext: str = DEFAULT_EXTENSION) -> str:
    """Key for a record saved outside a batch."""
    if custom:
        return custom if "." in custom else f"{custom}.{ext}"
    return f"{timestamp}.{ext}"


def generate_timestamp(now: datetime | None = None) -> str:
    """Render ``now`` (UTC) as a lexically sortable token."""
    now = now or datetime.now(timezone.utc)
    return now.strftime(TIMESTAMP_FORMAT)


def generate_batch_id() -> str:
    """Return 6 random upper-case hex characters."""
    return secrets.token_hex(3).upper()


def is_batch_id(value: str | None) -> bool:
    return bool(value) and _BATCH_ID_PATTERN.fullmatch(value) is not None


def extract_timestamp(filename: str) -> str | None:
    """Return the first timestamp token in ``filename``, if any."""
    match = _TIMESTAMP_PATTERN.search(filename)
    return match.group(0) if match else None


def extract_sequence(filename: str, batch_id: str) -> int:
    """Parse the sequence number that follows ``<batch_id>_``.

    Only the leading digits of the token count, so ``ABC123_7.png`` is
    sequence 7.  Anything unparsable returns ``SEQUENCE_SENTINEL``.
    """
    if not filename.startswith(f"{batch_id}_"):
        return SEQUENCE_SENTINEL
    token = filename[len(batch_id) + 1:].split("_", 1)[0]
    match = _LEADING_INT.match(token)
    if match is None:
        return SEQUENCE_SENTINEL
    return int(match.group(0))


def _decode_entity(match: re.Match) -> str:
    decimal, hexadecimal, name = match.groups()
    if name:
        return _NAMED_ENTITIES[name]
    codepoint = int(decimal, 10) if decimal is not None else int(hexadecimal, 16)
    try:
        return chr(codepoint)
    except (ValueError, OverflowError):
        return match.group(0)


def decode_html_entities(text: str) -> str:
    """Decode numeric entities and the five standard named ones.

    Single pass: ``&amp;lt;`` becomes ``&lt;``, not ``<``.
    """
    return _ENTITY.sub(_decode_entity, text)


def clean_reference(raw: str) -> str:
    """Strip markup tags and whitespace from a relayed URL, then decode it."""
    return decode_html_entities(_MARKUP_TAG.sub("", raw).strip())


def extension_from_url(url: str) -> str | None:
    """Lower-case extension of the URL path, without the dot."""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    if not suffix or suffix == ".":
        return None
    return suffix[1:]
