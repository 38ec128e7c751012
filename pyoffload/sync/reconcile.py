"""Verification of the media library against remote storage."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from ..utils import DEFAULT_BATCH_SIZE
from .comparator import FileState, classify
from .counters import CounterSet
from .engine import ProgressCallback, StopCallback, walk_inventory
from .operations import SyncOperations
from .options import RunConfig
from .orphans import OrphanScanner
from .remote_index import RemoteIndex
from .scanner import FileEntry

if TYPE_CHECKING:
    from ..inventory import InventorySource
    from ..storage import S3StorageClient

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of a verification run."""

    counters: CounterSet
    """Verification counters"""

    orphans: list[str] = field(default_factory=list)
    """Remote keys not referenced by any library item"""

    visited_keys: set[str] = field(default_factory=set)
    """Remote keys of every library file examined"""

    total_items: int = 0
    """Number of items the inventory reported at the start of the run"""


class ReconciliationEngine:
    """Classifies every library file against remote storage and repairs drift.

    Each file falls into exactly one FileState. Dry runs count the same
    outcomes a real run would, without uploading or deleting.
    """

    def __init__(
        self,
        storage: "S3StorageClient",
        inventory: "InventorySource",
        local_root: Path,
        prefix: Optional[str] = None,
    ):
        """Initialize the reconciliation engine.

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
        self.orphan_scanner = OrphanScanner(self.operations)

    def run(
        self,
        options: RunConfig,
        remote_index: Optional[RemoteIndex] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_callback: Optional[ProgressCallback] = None,
        orphan_progress_callback: Optional[Callable[[str], None]] = None,
        stop_requested: Optional[StopCallback] = None,
    ) -> ReconcileResult:
        """Verify the library and then scan for orphans.

        The orphan scan is skipped when the walk is stopped early, since an
        incomplete visited set would report referenced keys as orphans.

        Args:
            options: Run flags
            remote_index: Pre-built index; listed here if not given
            batch_size: Number of items per page
            progress_callback: Called once per library item
            orphan_progress_callback: Called once per remote key in the orphan scan
            stop_requested: Returns True to stop between items

        Returns:
            ReconcileResult with counters and orphan keys

        Raises:
            OffloadListError: If the remote listing fails; nothing is touched
        """
        start_time = time.time()
        if remote_index is None:
            remote_index = RemoteIndex.build(self.storage, self.prefix)

        result = ReconcileResult(
            counters=CounterSet.for_verify(),
            total_items=self.inventory.total_count(),
        )

        completed = self.verify_library(
            remote_index,
            options,
            result,
            batch_size=batch_size,
            progress_callback=progress_callback,
            stop_requested=stop_requested,
        )

        if completed:
            result.orphans = self.orphan_scanner.scan(
                remote_index,
                result.visited_keys,
                options,
                result.counters,
                progress_callback=orphan_progress_callback,
            )
        else:
            logger.warning("Verification stopped early, skipping orphan scan")

        logger.debug(
            f"Verification finished in {time.time() - start_time:.2f}s: "
            f"{result.counters.as_dict()}"
        )
        return result

    def verify_library(
        self,
        remote_index: RemoteIndex,
        options: RunConfig,
        result: ReconcileResult,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_callback: Optional[ProgressCallback] = None,
        stop_requested: Optional[StopCallback] = None,
    ) -> bool:
        """Walk the inventory and handle every file.

        Returns:
            True if the walk covered the whole inventory
        """
        counters = result.counters
        stopped = False

        def _stop() -> bool:
            nonlocal stopped
            if stop_requested is not None and stop_requested():
                stopped = True
            return stopped

        try:
            for _identifier, entries in walk_inventory(
                self.inventory,
                self.local_root,
                self.prefix,
                batch_size=batch_size,
                progress_callback=progress_callback,
                stop_requested=_stop,
            ):
                counters.increment("wp_attachments_scanned")
                for entry in entries:
                    # Another item already resolved this key
                    if entry.remote_key in result.visited_keys:
                        logger.debug(f"Already verified {entry.remote_key}, skipping")
                        continue
                    counters.increment("wp_files_scanned")
                    result.visited_keys.add(entry.remote_key)
                    state = classify(
                        entry.local_path.exists(), entry.remote_key in remote_index
                    )
                    self.handle_file(entry, state, options, counters)
        except KeyboardInterrupt:
            logger.warning("Verification cancelled by user")
            raise

        return not stopped

    def handle_file(
        self,
        entry: FileEntry,
        state: FileState,
        options: RunConfig,
        counters: CounterSet,
    ) -> None:
        """Count a classified file and apply the configured repair."""
        if state in (FileState.REMOTE_MISSING, FileState.BOTH_PRESENT):
            counters.increment("local_files_exist")

        if state is FileState.REMOTE_MISSING:
            counters.increment("s3_missing")
            if options.reupload_missing:
                self._reupload(entry, options, counters)
        elif state is FileState.BOTH_PRESENT:
            if options.cleanup_local and not options.reupload_missing:
                self._cleanup_local(entry, options, counters)
        elif state is FileState.OFFLOADED:
            counters.increment("s3_exists_local_missing")
        else:
            logger.info(
                f"Broken reference, both copies missing: {entry.local_path} "
                f"({entry.remote_key})"
            )
            counters.increment("local_missing_s3_missing")

    def _reupload(
        self, entry: FileEntry, options: RunConfig, counters: CounterSet
    ) -> None:
        if options.dry_run:
            logger.debug(f"Would re-upload {entry.local_path} to {entry.remote_key}")
            counters.increment("s3_reuploaded")
        elif self.operations.upload(entry):
            counters.increment("s3_reuploaded")
        else:
            counters.increment("s3_reupload_failed")
            return

        if options.cleanup_local:
            self._cleanup_local(entry, options, counters)

    def _cleanup_local(
        self, entry: FileEntry, options: RunConfig, counters: CounterSet
    ) -> None:
        if options.dry_run:
            logger.debug(f"Would delete local copy {entry.local_path}")
            counters.increment("local_cleaned")
        elif self.operations.delete_local(entry):
            counters.increment("local_cleaned")
        else:
            counters.increment("local_cleanup_failed")
