"""One-directional sync engine pushing local library files to storage."""

import logging
import time
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from ..utils import DEFAULT_BATCH_SIZE, batched
from .counters import CounterSet
from .operations import SyncOperations
from .options import RunConfig
from .remote_index import RemoteIndex
from .scanner import FileEntry, Identifier

if TYPE_CHECKING:
    from ..inventory import InventorySource
    from ..storage import S3StorageClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Identifier], None]
StopCallback = Callable[[], bool]


def walk_inventory(
    inventory: "InventorySource",
    local_root: Path,
    prefix: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress_callback: Optional[ProgressCallback] = None,
    stop_requested: Optional[StopCallback] = None,
) -> Iterator[tuple[Identifier, list[FileEntry]]]:
    """Walk the inventory item by item, in pages of ``batch_size``.

    Each item is yielded with all of its files. The progress callback runs
    once the consumer has finished with an item, and ``stop_requested`` is
    checked before each item.

    Args:
        inventory: Source of library items
        local_root: Root directory of the local media library
        prefix: Remote namespace prefix
        batch_size: Number of items per page
        progress_callback: Called with each item identifier after processing
        stop_requested: Returns True to end the walk before the next item

    Yields:
        (identifier, file entries) tuples
    """
    for page_num, page in enumerate(
        batched(inventory.all_identifiers(), batch_size), start=1
    ):
        logger.debug(f"Processing page {page_num} ({len(page)} items)")
        for identifier in page:
            if stop_requested is not None and stop_requested():
                logger.info(f"Stop requested, ending walk before item {identifier}")
                return
            yield identifier, inventory.files_for(identifier, local_root, prefix)
            if progress_callback is not None:
                progress_callback(identifier)


class SyncEngine:
    """Uploads every library file that is not yet in remote storage."""

    def __init__(
        self,
        storage: "S3StorageClient",
        inventory: "InventorySource",
        local_root: Path,
        prefix: Optional[str] = None,
    ):
        """Initialize sync engine.

        Args:
            storage: Object storage client
            inventory: Source of library items
            local_root: Root directory of the local media library
            prefix: Remote namespace prefix (defaults to the storage prefix)
        """
        self.storage = storage
        self.inventory = inventory
        self.local_root = local_root
        self.prefix = prefix if prefix is not None else storage.prefix
        self.operations = SyncOperations(storage)

    def build_remote_index(
        self, options: RunConfig, prefetch_index: bool = True
    ) -> Optional[RemoteIndex]:
        """List remote keys up front unless the run does not need them.

        Returns:
            RemoteIndex, or None when force-uploading or when prefetching is
            disabled (existence is then probed per file)

        Raises:
            OffloadListError: If the listing fails
        """
        if options.force_upload:
            logger.debug("Force upload enabled, skipping remote listing")
            return None
        if not prefetch_index:
            logger.debug("Remote listing disabled, probing each file")
            return None
        return RemoteIndex.build(self.storage, self.prefix)

    def run(
        self,
        options: RunConfig,
        remote_index: Optional[RemoteIndex] = None,
        prefetch_index: bool = True,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_callback: Optional[ProgressCallback] = None,
        stop_requested: Optional[StopCallback] = None,
    ) -> CounterSet:
        """Push local library files to remote storage.

        Args:
            options: Run flags (dry_run and force_upload apply)
            remote_index: Pre-built index; built here if not given
            prefetch_index: If False and no index is given, probe each key
            batch_size: Number of items per page
            progress_callback: Called once per library item
            stop_requested: Returns True to stop between items

        Returns:
            Sync counters

        Raises:
            OffloadListError: If the remote listing fails

        Examples:
            >>> engine = SyncEngine(storage, inventory, Path("/srv/uploads"))
            >>> counters = engine.run(RunConfig(dry_run=True))
            >>> print(f"Would upload {counters['files_uploaded']} files")
        """
        start_time = time.time()
        if remote_index is None:
            remote_index = self.build_remote_index(options, prefetch_index)

        counters = CounterSet.for_sync()
        seen_keys: set[str] = set()

        try:
            for _identifier, entries in walk_inventory(
                self.inventory,
                self.local_root,
                self.prefix,
                batch_size=batch_size,
                progress_callback=progress_callback,
                stop_requested=stop_requested,
            ):
                for entry in entries:
                    # Another item already handled this key
                    if entry.remote_key in seen_keys:
                        logger.debug(f"Already handled {entry.remote_key}, skipping")
                        continue
                    seen_keys.add(entry.remote_key)
                    self._process_entry(entry, options, remote_index, counters)
        except KeyboardInterrupt:
            logger.warning("Sync cancelled by user")
            raise

        logger.debug(
            f"Sync finished in {time.time() - start_time:.2f}s: {counters.as_dict()}"
        )
        return counters

    def _process_entry(
        self,
        entry: FileEntry,
        options: RunConfig,
        remote_index: Optional[RemoteIndex],
        counters: CounterSet,
    ) -> None:
        counters.increment("total_files_processed")

        if not entry.local_path.exists():
            logger.debug(f"Local file not found: {entry.local_path}")
            counters.increment("files_local_not_found")
            return

        if not options.force_upload:
            if remote_index is not None:
                already_remote = entry.remote_key in remote_index
            else:
                already_remote = self.operations.remote_exists(entry)
            if already_remote:
                counters.increment("files_skipped_exists")
                return

        if options.dry_run:
            logger.debug(f"Would upload {entry.local_path} to {entry.remote_key}")
            counters.increment("files_uploaded")
            return

        if self.operations.upload(entry):
            counters.increment("files_uploaded")
        else:
            counters.increment("files_s3_errors")
