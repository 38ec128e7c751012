"""Side-effecting file operations used by the sync engines."""

import logging
from typing import TYPE_CHECKING

from .scanner import FileEntry

if TYPE_CHECKING:
    from ..storage import S3StorageClient

logger = logging.getLogger(__name__)


class SyncOperations:
    """Upload and delete operations that report success as a boolean."""

    def __init__(self, storage: "S3StorageClient"):
        """Initialize sync operations.

        Args:
            storage: Object storage client
        """
        self.storage = storage

    def upload(self, entry: FileEntry) -> bool:
        """Upload a library file to its remote key.

        Args:
            entry: File to upload

        Returns:
            True if the upload succeeded
        """
        return self.storage.put(entry.local_path, entry.remote_key)

    def remote_exists(self, entry: FileEntry) -> bool:
        """Probe remote storage for a single key."""
        return self.storage.exists(entry.remote_key)

    def delete_remote(self, remote_key: str) -> bool:
        """Delete a remote object.

        Args:
            remote_key: Key of the object to delete

        Returns:
            True if the object was deleted (or was already absent)
        """
        return self.storage.delete(remote_key)

    def delete_local(self, entry: FileEntry) -> bool:
        """Permanently delete the local copy of a library file.

        Args:
            entry: File whose local copy is deleted

        Returns:
            True if the file was deleted
        """
        try:
            entry.local_path.unlink()
            return True
        except OSError as e:
            logger.warning(f"Failed to delete local file {entry.local_path}: {e}")
            return False
