"""Utility functions for pyoffload."""

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

T = TypeVar("T")

# =============================================================================
# Constants for library operations
# =============================================================================

# Number of media items processed per page during a run
DEFAULT_BATCH_SIZE: int = 100

# Maximum number of orphan keys listed when orphans are not deleted
MAX_ORPHANS_TO_LIST: int = 20

# Maximum number of keys requested by the connection test
CONNECTION_TEST_MAX_KEYS: int = 10

# Timeout for public URL probes (seconds)
URL_CHECK_TIMEOUT: float = 10.0

# Maximum redirects followed by public URL probes
URL_CHECK_MAX_REDIRECTS: int = 5


# =============================================================================
# Iteration utilities
# =============================================================================


def batched(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Split an iterable into lists of at most ``size`` items.

    Args:
        items: Items to split
        size: Maximum number of items per batch

    Yields:
        Lists of consecutive items

    Examples:
        >>> list(batched([1, 2, 3, 4, 5], 2))
        [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")

    iterator = iter(items)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


# =============================================================================
# Size formatting utilities
# =============================================================================

_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in _SIZE_UNITS:
        size /= 1024
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            break
    return f"{size:.1f} {unit}"
