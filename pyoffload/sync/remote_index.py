"""Snapshot of the object keys present in remote storage."""

import logging
import time
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..storage import S3StorageClient

logger = logging.getLogger(__name__)


class RemoteIndex:
    """Immutable set of remote keys under a prefix, listed once per run.

    Entries reflect the moment of listing; changes made to the bucket
    afterwards are not observed.
    """

    def __init__(self, keys: Iterable[str], prefix: str = ""):
        self._keys = frozenset(keys)
        self.prefix = prefix

    @classmethod
    def build(cls, storage: "S3StorageClient", prefix: str) -> "RemoteIndex":
        """List every key under ``prefix``.

        Args:
            storage: Storage client
            prefix: Key prefix to list

        Returns:
            Complete RemoteIndex

        Raises:
            OffloadListError: If the listing fails; no partial index is returned
        """
        start = time.time()
        keys = storage.list_keys(prefix)
        logger.debug(
            f"Remote index for '{prefix}' built with {len(keys)} keys "
            f"in {time.time() - start:.2f}s"
        )
        return cls(keys, prefix)

    @property
    def keys(self) -> frozenset[str]:
        return self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"RemoteIndex(prefix={self.prefix!r}, keys={len(self._keys)})"
