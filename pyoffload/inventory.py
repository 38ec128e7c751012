"""Sources of the media items the hosting library owns."""

import json
import logging
import posixpath
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Optional, Protocol

from .config import DEFAULT_PREFIX
from .exceptions import OffloadInventoryError
from .sync.scanner import FileEntry, Identifier, LogicalItem, expand_item
from .utils import DEFAULT_BATCH_SIZE

logger = logging.getLogger(__name__)


class InventorySource(Protocol):
    """The set of files the hosting library believes it owns."""

    def total_count(self) -> int:
        """Number of items in the library."""
        ...

    def all_identifiers(self) -> Iterator[Identifier]:
        """Iterate over every item identifier."""
        ...

    def files_for(
        self, identifier: Identifier, local_root: Path, prefix: str = DEFAULT_PREFIX
    ) -> list[FileEntry]:
        """List the files owned by one item."""
        ...


class StaticInventory:
    """Inventory over an in-memory list of items with paged enumeration."""

    def __init__(
        self, items: Iterable[LogicalItem] = (), page_size: int = DEFAULT_BATCH_SIZE
    ):
        """Initialize the inventory.

        Args:
            items: Items owned by the library
            page_size: Number of identifiers fetched per page
        """
        self.page_size = page_size
        self._items: Optional[dict[Identifier, LogicalItem]] = None
        self._identifiers: list[Identifier] = []
        if items:
            self._set_items(items)

    def _set_items(self, items: Iterable[LogicalItem]) -> None:
        self._items = {}
        for item in items:
            if item.identifier in self._items:
                logger.warning(f"Duplicate item identifier {item.identifier}, keeping last")
            self._items[item.identifier] = item
        self._identifiers = list(self._items)

    def _load(self) -> dict[Identifier, LogicalItem]:
        if self._items is None:
            self._items = {}
        return self._items

    def get_item(self, identifier: Identifier) -> Optional[LogicalItem]:
        """Look up a single item by identifier."""
        return self._load().get(identifier)

    def get_page(self, page: int, per_page: Optional[int] = None) -> list[Identifier]:
        """Get one page of identifiers (1-based page number)."""
        per_page = per_page or self.page_size
        self._load()
        start = (page - 1) * per_page
        return self._identifiers[start : start + per_page]

    def total_count(self) -> int:
        return len(self._load())

    def all_identifiers(self) -> Iterator[Identifier]:
        """Iterate over every identifier, fetching one page at a time."""
        total = self.total_count()
        last_page = max(1, -(-total // self.page_size))
        current_page = 1

        while current_page <= last_page:
            page = self.get_page(current_page)
            if not page:
                break
            logger.debug(f"Inventory page {current_page}/{last_page}: {len(page)} items")
            yield from page
            current_page += 1

    def files_for(
        self, identifier: Identifier, local_root: Path, prefix: str = DEFAULT_PREFIX
    ) -> list[FileEntry]:
        item = self.get_item(identifier)
        if item is None:
            logger.warning(f"Unknown item identifier {identifier}")
            return []
        return expand_item(item, local_root, prefix)


def _join_dir(directory: str, filename: str) -> str:
    return f"{directory}/{filename}" if directory else filename


def item_from_metadata(data: dict[str, Any]) -> LogicalItem:
    """Build a LogicalItem from attachment metadata.

    The metadata mirrors what the hosting application records per
    attachment: ``file`` is the primary path relative to the uploads root,
    ``original_image`` and ``sizes[*].file`` are file names stored in the
    primary file's directory.

    Args:
        data: Metadata dictionary, e.g.
            {"id": 7, "file": "2024/01/a-scaled.jpg",
             "original_image": "a.jpg",
             "sizes": {"thumbnail": {"file": "a-150x150.jpg"}}}

    Returns:
        LogicalItem instance

    Raises:
        OffloadInventoryError: If the metadata has no identifier or
            malformed fields
    """
    if not isinstance(data, dict) or "id" not in data:
        raise OffloadInventoryError(f"Inventory entry without 'id': {data!r}")

    identifier = data["id"]
    primary_path = data.get("file") or None
    if primary_path is not None and not isinstance(primary_path, str):
        raise OffloadInventoryError(f"Item {identifier}: 'file' must be a string")

    primary_dir = posixpath.dirname(primary_path) if primary_path else ""
    if primary_dir == ".":
        primary_dir = ""

    original_path = None
    original_image = data.get("original_image")
    if original_image:
        original_path = _join_dir(primary_dir, original_image)

    sizes = data.get("sizes") or {}
    if not isinstance(sizes, dict):
        raise OffloadInventoryError(f"Item {identifier}: 'sizes' must be a mapping")

    variants = []
    for size_name, size_info in sizes.items():
        filename = size_info.get("file") if isinstance(size_info, dict) else None
        variants.append((size_name, _join_dir(primary_dir, filename) if filename else ""))

    return LogicalItem(
        identifier=identifier,
        primary_path=primary_path,
        variants=tuple(variants),
        original_path=original_path,
    )


class ManifestInventory(StaticInventory):
    """Inventory loaded lazily from a JSON manifest exported by the host.

    The manifest is either a list of attachment metadata objects or an
    object with an ``attachments`` list. See ``item_from_metadata`` for
    the per-item format.
    """

    def __init__(self, manifest_path: Path, page_size: int = DEFAULT_BATCH_SIZE):
        super().__init__(page_size=page_size)
        self.manifest_path = manifest_path

    def _load(self) -> dict[Identifier, LogicalItem]:
        if self._items is not None:
            return self._items

        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise OffloadInventoryError(
                f"Cannot read manifest {self.manifest_path}: {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise OffloadInventoryError(
                f"Invalid JSON in manifest {self.manifest_path}: {e}"
            ) from e

        if isinstance(data, dict):
            data = data.get("attachments")
        if not isinstance(data, list):
            raise OffloadInventoryError(
                f"Manifest {self.manifest_path} must contain a list of attachments"
            )

        self._set_items(item_from_metadata(entry) for entry in data)
        logger.debug(f"Loaded {len(self._items)} items from {self.manifest_path}")
        return self._items
