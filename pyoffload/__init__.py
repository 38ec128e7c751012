"""PyOffload - Offload a local media library to S3-compatible object storage."""

from .exceptions import (
    OffloadConfigError,
    OffloadError,
    OffloadInventoryError,
    OffloadListError,
    OffloadStorageError,
)
from .inventory import InventorySource, ManifestInventory, StaticInventory
from .storage import S3StorageClient
from .sync import ReconciliationEngine, RunConfig, SyncEngine

__all__ = [
    "S3StorageClient",
    "SyncEngine",
    "ReconciliationEngine",
    "RunConfig",
    "InventorySource",
    "ManifestInventory",
    "StaticInventory",
    "OffloadError",
    "OffloadConfigError",
    "OffloadInventoryError",
    "OffloadListError",
    "OffloadStorageError",
]
