"""Sync and verification engines for pyoffload."""

from .comparator import FileState, classify
from .counters import SYNC_COUNTERS, VERIFY_COUNTERS, CounterSet
from .engine import SyncEngine, walk_inventory
from .keys import collapse_separators, derive_remote_key, path_to_remote_key, strip_prefix
from .operations import SyncOperations
from .options import RunConfig
from .orphans import OrphanScanner
from .reconcile import ReconcileResult, ReconciliationEngine
from .remote_index import RemoteIndex
from .scanner import FileEntry, LogicalItem, expand_item

__all__ = [
    "SyncEngine",
    "ReconciliationEngine",
    "ReconcileResult",
    "OrphanScanner",
    "SyncOperations",
    "RunConfig",
    "RemoteIndex",
    "CounterSet",
    "SYNC_COUNTERS",
    "VERIFY_COUNTERS",
    "FileState",
    "classify",
    "FileEntry",
    "LogicalItem",
    "expand_item",
    "walk_inventory",
    "collapse_separators",
    "derive_remote_key",
    "path_to_remote_key",
    "strip_prefix",
]
