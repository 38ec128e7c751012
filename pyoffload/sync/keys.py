"""Mapping of local media paths to remote object keys."""

import re
from pathlib import Path

from ..config import DEFAULT_PREFIX

_SEPARATOR_RUN = re.compile(r"/{2,}")


def collapse_separators(key: str) -> str:
    """Collapse runs of ``/`` into a single separator.

    Idempotent: applying it to its own output returns the output unchanged.

    Examples:
        >>> collapse_separators("uploads//2024///a.jpg")
        'uploads/2024/a.jpg'
    """
    return _SEPARATOR_RUN.sub("/", key)


def derive_remote_key(relative_path: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Derive the remote object key for a path relative to the local root.

    No escaping or case folding is applied, so keys are derived byte for
    byte from relative paths.

    Args:
        relative_path: Path relative to the local media root, using ``/``
        prefix: Remote namespace prefix (e.g. "uploads/")

    Returns:
        Remote object key

    Examples:
        >>> derive_remote_key("2024/01/photo.jpg")
        'uploads/2024/01/photo.jpg'
        >>> derive_remote_key("photo.jpg", prefix="media/")
        'media/photo.jpg'
    """
    if not prefix:
        return collapse_separators(relative_path.lstrip("/"))
    return collapse_separators(f"{prefix}/{relative_path}")


def path_to_remote_key(
    local_path: Path, local_root: Path, prefix: str = DEFAULT_PREFIX
) -> str:
    """Derive the remote key for an absolute local path.

    Args:
        local_path: Path of a file below ``local_root``
        local_root: Root directory of the local media library
        prefix: Remote namespace prefix

    Returns:
        Remote object key

    Raises:
        ValueError: If ``local_path`` is not below ``local_root``
    """
    relative_path = local_path.relative_to(local_root).as_posix()
    return derive_remote_key(relative_path, prefix)


def strip_prefix(key: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Remove the namespace prefix from a remote key.

    Keys outside the namespace are returned unchanged.

    Examples:
        >>> strip_prefix("uploads/2024/a.jpg")
        '2024/a.jpg'
    """
    normalized = collapse_separators(prefix.rstrip("/") + "/")
    if key.startswith(normalized):
        return key[len(normalized) :]
    return key
