"""Expansion of media library items into the files they own."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..config import DEFAULT_PREFIX
from .keys import derive_remote_key

logger = logging.getLogger(__name__)

Identifier = Union[int, str]

PRIMARY_LABEL = "primary"
ORIGINAL_LABEL = "true_original"


@dataclass(frozen=True)
class LogicalItem:
    """One media item the hosting library is authoritative over."""

    identifier: Identifier
    """Opaque identifier assigned by the metadata store"""

    primary_path: Optional[str]
    """Primary file path relative to the local root (None if not registered)"""

    variants: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    """(variant name, relative path) pairs, e.g. ("thumbnail", "2024/a-150x150.jpg")"""

    original_path: Optional[str] = None
    """Unscaled original relative path when the primary is a derived rendition"""


@dataclass(frozen=True)
class FileEntry:
    """A physical file derived from a LogicalItem."""

    local_path: Path
    """Absolute path of the local copy"""

    remote_key: str
    """Remote object key"""

    label: str
    """Role of the file: primary, true_original or the variant name"""


def _entry(local_root: Path, relative_path: str, prefix: str, label: str) -> FileEntry:
    return FileEntry(
        local_path=local_root / relative_path.lstrip("/"),
        remote_key=derive_remote_key(relative_path, prefix),
        label=label,
    )


def expand_item(
    item: LogicalItem, local_root: Path, prefix: str = DEFAULT_PREFIX
) -> list[FileEntry]:
    """List every file a media item owns.

    The result holds the primary file, the true original when it differs
    from the primary, and each variant with a non-empty path. Files that map
    to an already listed remote key (e.g. two sizes with the same
    dimensions) are listed once, under the first label. Items without a
    primary path own no files.

    Args:
        item: Media item to expand
        local_root: Root directory of the local media library
        prefix: Remote namespace prefix

    Returns:
        List of FileEntry objects, primary first
    """
    if not item.primary_path:
        logger.debug(f"Item {item.identifier} has no primary file, skipping")
        return []

    candidates = [(PRIMARY_LABEL, item.primary_path)]
    if item.original_path:
        candidates.append((ORIGINAL_LABEL, item.original_path))
    candidates.extend(item.variants)

    entries: list[FileEntry] = []
    seen_keys: set[str] = set()
    for label, relative_path in candidates:
        # Variants may be registered without a materialized file
        if not relative_path:
            continue
        entry = _entry(local_root, relative_path, prefix, label)
        if entry.remote_key in seen_keys:
            logger.debug(
                f"Item {item.identifier}: {label} shares {entry.remote_key}, skipping"
            )
            continue
        seen_keys.add(entry.remote_key)
        entries.append(entry)

    return entries
