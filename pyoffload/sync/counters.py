"""Named outcome counters for sync and verification runs.

Counter names are part of the reporting contract: summaries and JSON
output key off them by name.
"""

from collections.abc import Iterable, Iterator, Mapping

SYNC_COUNTERS = (
    "total_files_processed",
    "files_uploaded",
    "files_skipped_exists",
    "files_local_not_found",
    "files_s3_errors",
)

VERIFY_COUNTERS = (
    "wp_attachments_scanned",
    "wp_files_scanned",
    "local_files_exist",
    "s3_missing",
    "s3_exists_local_missing",
    "s3_reuploaded",
    "s3_reupload_failed",
    "local_cleaned",
    "local_cleanup_failed",
    "local_missing_s3_missing",
    "s3_objects_scanned",
    "s3_orphans_found",
    "s3_orphans_deleted",
    "s3_orphan_delete_failed",
)


class CounterSet(Mapping[str, int]):
    """A fixed set of non-negative counters that can only grow.

    Examples:
        >>> counters = CounterSet.for_sync()
        >>> counters.increment("files_uploaded")
        >>> counters["files_uploaded"]
        1
    """

    def __init__(self, names: Iterable[str]):
        self._values: dict[str, int] = dict.fromkeys(names, 0)

    @classmethod
    def for_sync(cls) -> "CounterSet":
        return cls(SYNC_COUNTERS)

    @classmethod
    def for_verify(cls) -> "CounterSet":
        return cls(VERIFY_COUNTERS)

    def increment(self, name: str, amount: int = 1) -> None:
        """Add ``amount`` to a counter.

        Raises:
            KeyError: If the counter is not part of this set
            ValueError: If amount is negative
        """
        if name not in self._values:
            raise KeyError(f"Unknown counter: {name}")
        if amount < 0:
            raise ValueError(f"Counters cannot be decremented ({name}: {amount})")
        self._values[name] += amount

    def as_dict(self) -> dict[str, int]:
        """Return a plain copy of the counters for reporting."""
        return dict(self._values)

    def __getitem__(self, name: str) -> int:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CounterSet({self._values!r})"
