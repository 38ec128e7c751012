"""Detection and removal of remote objects no library item references."""

import logging
from collections.abc import Set
from typing import Callable, Optional

from .counters import CounterSet
from .operations import SyncOperations
from .options import RunConfig
from .remote_index import RemoteIndex

logger = logging.getLogger(__name__)


class OrphanScanner:
    """Compares the remote index with the keys visited during verification.

    Only meaningful after a full verification walk, since the visited set
    must cover every library file.
    """

    def __init__(self, operations: SyncOperations):
        self.operations = operations

    def find_orphans(
        self,
        remote_index: RemoteIndex,
        visited_keys: Set[str],
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> list[str]:
        """Return the sorted remote keys missing from ``visited_keys``."""
        orphans = []
        for key in remote_index:
            if key not in visited_keys:
                orphans.append(key)
            if progress_callback is not None:
                progress_callback(key)
        return orphans

    def scan(
        self,
        remote_index: RemoteIndex,
        visited_keys: Set[str],
        options: RunConfig,
        counters: CounterSet,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> list[str]:
        """Find orphans and delete them if requested.

        Args:
            remote_index: Complete remote index of the run
            visited_keys: Keys of every library file seen during the walk
            options: Run flags (delete_orphans and dry_run apply)
            counters: Verification counters to update
            progress_callback: Called once per remote key examined

        Returns:
            All orphan keys, whether or not they were deleted
        """
        counters.increment("s3_objects_scanned", len(remote_index))

        orphans = self.find_orphans(remote_index, visited_keys, progress_callback)
        counters.increment("s3_orphans_found", len(orphans))

        if orphans:
            logger.info(f"Found {len(orphans)} orphan object(s)")
            if options.delete_orphans:
                self.delete_orphans(orphans, options, counters)

        return orphans

    def delete_orphans(
        self, orphans: list[str], options: RunConfig, counters: CounterSet
    ) -> None:
        """Delete orphan objects, counting successes and failures."""
        for key in orphans:
            if options.dry_run:
                logger.debug(f"Would delete orphan {key}")
                counters.increment("s3_orphans_deleted")
            elif self.operations.delete_remote(key):
                counters.increment("s3_orphans_deleted")
            else:
                counters.increment("s3_orphan_delete_failed")
